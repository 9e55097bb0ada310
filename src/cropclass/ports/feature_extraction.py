# src/cropclass/ports/feature_extraction.py
from __future__ import annotations

from typing import Protocol, runtime_checkable
from ..contracts.core import FeatureVector
from .image_store import ImageRef

@runtime_checkable
class FeatureExtractorPort(Protocol):
    """
    imageRef -> FeatureVector. Determinista para una misma imagen.
    Lanza NotFoundError si la referencia no resuelve a datos de imagen legibles.
    """
    def extract(self, image_ref: ImageRef) -> FeatureVector: ...

__all__ = ["FeatureExtractorPort"]
