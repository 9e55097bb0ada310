# src/cropclass/adapters/csv_exporter.py
from __future__ import annotations

import csv
import io
from typing import Any, List, Sequence

from ..contracts.products import ClassificationResult
from ..ports.exporters import ResultFormatterPort

CSV_HEADERS = (
    "ID", "PredictedClass", "Confidence", "ConfidenceLevel", "RecommendedAction",
    "NDVI", "EVI", "SAVI", "AreaHa", "Latitude", "Longitude", "Timestamp",
)


def result_row(index: int, r: ClassificationResult) -> List[Any]:
    """Fila CSV (ID 1-indexado). Coordenadas ausentes -> ""."""
    c = r.coordinates
    return [
        index,
        r.prediction.label,
        r.prediction.confidence,
        r.confidence_level.level,
        r.confidence_level.action,
        r.features.ndvi,
        r.features.evi,
        r.features.savi,
        r.features.area_ha,
        c.lat if c is not None else "",
        c.lng if c is not None else "",
        r.timestamp.isoformat(),
    ]


class CSVExporter(ResultFormatterPort):
    """Exporter CSV: cabecera fija de 12 columnas + una fila por resultado.

    Convención:
      - strings entre comillas dobles, números sin comillas (QUOTE_NONNUMERIC)
      - separador ",", fin de línea "\\n"
    """
    content_type = "text/csv"
    extension = ".csv"

    def render(self, results: Sequence[ClassificationResult]) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for i, r in enumerate(results, start=1):
            writer.writerow(result_row(i, r))
        return buf.getvalue()
