# src/cropclass/adapters/jsonl_result_log.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..contracts.products import ClassificationResult
from ..ports.result_log import ResultLogPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JsonlResultLog(ResultLogPort):
    """Log de sesión en JSON lines: un ClassificationResult por línea, en orden."""
    path: Path

    def append(self, result: ClassificationResult) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(result.model_dump_json() + "\n")
        logger.debug("resultado %s agregado a %s", result.image_ref, self.path)

    def load(self) -> List[ClassificationResult]:
        if not self.path.exists():
            return []
        out: List[ClassificationResult] = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    out.append(ClassificationResult.model_validate_json(line))
        logger.debug("%d resultados leídos de %s", len(out), self.path)
        return out

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info("sesión %s vaciada", self.path)
