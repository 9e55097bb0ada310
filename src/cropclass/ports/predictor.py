# src/cropclass/ports/predictor.py
from __future__ import annotations

from typing import Protocol, runtime_checkable, Sequence
from ..contracts.core import ClassLabel, FeatureVector
from ..contracts.model import PredictionOutcome

@runtime_checkable
class PredictorPort(Protocol):
    """
    Clasificador por imagen.
    Reglas:
      - predict() lanza InvalidFeatureError si alguna feature está fuera de dominio.
      - probabilities[label] == confidence.
    """
    def predict(self, features: FeatureVector) -> PredictionOutcome: ...
    def classes(self) -> Sequence[ClassLabel]: ...
    def name(self) -> str: ...

__all__ = ["PredictorPort"]
