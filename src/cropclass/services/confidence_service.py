# src/cropclass/services/confidence_service.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

from ..contracts.errors import DomainError
from ..contracts.model import ConfidenceLevel, validate_tiers


@dataclass(frozen=True)
class ConfidenceClassifier:
    """
    Tabla de niveles (datos) + una única rutina de búsqueda.
    Recorre por umbral descendente y devuelve el primer nivel con
    threshold <= confidence; el nivel con threshold 0.0 es el catch-all.
    """
    tiers: Tuple[ConfidenceLevel, ...]

    @classmethod
    def from_table(cls, tiers: Iterable[ConfidenceLevel]) -> "ConfidenceClassifier":
        return cls(tiers=validate_tiers(tiers))

    def classify(self, confidence: float) -> ConfidenceLevel:
        c = float(confidence)
        if math.isnan(c) or c < 0.0 or c > 1.0:
            raise DomainError(confidence)
        for tier in self.tiers:
            if tier.threshold <= c:
                return tier
        # inalcanzable con una tabla validada (último threshold == 0.0)
        raise DomainError(confidence)
