# src/cropclass/contracts/model.py
from __future__ import annotations

import math
from typing import Dict, Iterable, Literal, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .core import FEATURE_DOMAINS, FeatureVector, IndexName

# -------------------------
# Reglas de decisión (datos de configuración)
# -------------------------
class Condition(BaseModel):
    """feature `op` threshold, p.ej. ndvi > 0.8"""
    model_config = ConfigDict(frozen=True)
    feature: IndexName
    op: Literal[">", "<="]
    threshold: float = Field(ge=-1.0, le=1.0)

    def holds(self, fv: FeatureVector) -> bool:
        v = fv.value(self.feature)
        return v > self.threshold if self.op == ">" else v <= self.threshold

    def span(self) -> float:
        """Distancia del umbral al borde del dominio en la dirección de `op`."""
        lo, hi, _ = FEATURE_DOMAINS[self.feature]
        hi = 1.0 if hi is None else hi
        s = (hi - self.threshold) if self.op == ">" else (self.threshold - lo)
        return max(s, 1e-9)

    def strength(self, fv: FeatureVector) -> float:
        """Margen normalizado [0, 1] respecto del umbral."""
        margin = abs(fv.value(self.feature) - self.threshold)
        return min(max(margin / self.span(), 0.0), 1.0)

    def __str__(self) -> str:
        return f"{self.feature} {self.op} {self.threshold}"


class DecisionRule(BaseModel):
    model_config = ConfigDict(frozen=True)
    label: str
    when: Tuple[Condition, ...] = ()
    band: Tuple[float, float]

    @field_validator("band")
    @classmethod
    def _band_ok(cls, v: Tuple[float, float]) -> Tuple[float, float]:
        lo, hi = v
        if not (0.0 <= lo <= hi <= 1.0):
            raise ValueError(f"band inválida {v}: requiere 0 <= low <= high <= 1")
        return (float(lo), float(hi))

    def matches(self, fv: FeatureVector) -> bool:
        return all(c.holds(fv) for c in self.when)

    def confidence(self, fv: FeatureVector) -> float:
        lo, hi = self.band
        s = min((c.strength(fv) for c in self.when), default=1.0)
        return lo + (hi - lo) * s

# -------------------------
# Predicción
# -------------------------
class PredictionOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)
    label: str
    confidence: float = Field(ge=0.0, le=1.0)
    probabilities: Dict[str, float]
    model: str = "rules-v1"

    @model_validator(mode="after")
    def _label_matches_confidence(self) -> "PredictionOutcome":
        p = self.probabilities.get(self.label)
        if p is None or not math.isclose(p, self.confidence, abs_tol=1e-9):
            raise ValueError("probabilities[label] debe ser igual a confidence")
        return self

# -------------------------
# Niveles de confianza
# -------------------------
class ConfidenceLevel(BaseModel):
    model_config = ConfigDict(frozen=True)
    level: int = Field(ge=1, le=5)
    threshold: float = Field(ge=0.0, le=1.0)   # cota inferior inclusiva
    label: str
    action: str


def validate_tiers(tiers: Iterable[ConfidenceLevel]) -> Tuple[ConfidenceLevel, ...]:
    """
    Ordena por umbral descendente y verifica:
      - umbrales estrictamente decrecientes (sin duplicados)
      - niveles decrecientes en el mismo orden
      - el último umbral es 0.0 (catch-all)
    """
    out = tuple(sorted(tiers, key=lambda t: t.threshold, reverse=True))
    if not out:
        raise ValueError("la tabla de confianza no puede ser vacía")
    for a, b in zip(out, out[1:]):
        if not a.threshold > b.threshold:
            raise ValueError(f"umbrales duplicados en tabla de confianza: {a.threshold}")
        if not a.level > b.level:
            raise ValueError(f"nivel {a.level} (>= {a.threshold}) debe ser mayor que nivel {b.level}")
    if out[-1].threshold != 0.0:
        raise ValueError("el último nivel debe tener threshold 0.0")
    return out


def validate_rules(rules: Sequence[DecisionRule], labels: Iterable[str]) -> None:
    known = set(labels)
    unknown = sorted({r.label for r in rules} - known)
    if unknown:
        raise ValueError(f"decision_rules usa clases no declaradas: {unknown}")


__all__ = [
    "Condition", "DecisionRule", "PredictionOutcome", "ConfidenceLevel",
    "validate_tiers", "validate_rules",
]
