# src/cropclass/services/export_service.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Sequence, Union

from ..contracts.errors import EmptyInputError, UnsupportedFormatError
from ..contracts.products import ClassificationResult, ExportArtifact, ExportFormat, ExportJob
from ..ports.exporters import ResultFormatterPort
from .result_assembler import Clock, utc_now

# prefijo de nombre de archivo por formato
_FILE_STEMS: Mapping[ExportFormat, str] = {
    ExportFormat.CSV: "classification_results",
    ExportFormat.GEOJSON: "classification_results",
    ExportFormat.PDF: "classification_report",
}


def file_timestamp(dt: datetime) -> str:
    """ISO con ':' y '.' reemplazados por '-' (apto para nombres de archivo)."""
    return dt.isoformat().replace(":", "-").replace(".", "-")


def parse_format(fmt: Union[str, ExportFormat, None]) -> ExportFormat:
    if isinstance(fmt, ExportFormat):
        return fmt
    key = str(fmt).strip().lower() if fmt is not None else ""
    try:
        return ExportFormat(key)
    except ValueError:
        raise UnsupportedFormatError(fmt, ExportFormat.values()) from None


@dataclass
class ExportService:
    """
    ExportJob -> ExportArtifact. Pliegue puro sobre la lista de resultados;
    la entrega (disco/HTTP) es responsabilidad del llamador.
    """
    formatters: Mapping[ExportFormat, ResultFormatterPort]
    clock: Clock = field(default=utc_now)

    def job(self, fmt: Union[str, ExportFormat, None], results: Sequence[ClassificationResult]) -> ExportJob:
        ef = parse_format(fmt)
        if not results:
            raise EmptyInputError()
        return ExportJob(format=ef, results=tuple(results))

    def run(self, job: ExportJob) -> ExportArtifact:
        formatter = self.formatters.get(job.format)
        if formatter is None:
            raise UnsupportedFormatError(job.format.value, [f.value for f in self.formatters])
        text = formatter.render(job.results)
        name = f"{_FILE_STEMS[job.format]}_{file_timestamp(self.clock())}{formatter.extension}"
        return ExportArtifact(
            content=text.encode("utf-8"),
            content_type=formatter.content_type,
            filename=name,
        )

    def export(self, fmt: Union[str, ExportFormat, None], results: Sequence[ClassificationResult]) -> ExportArtifact:
        return self.run(self.job(fmt, results))
