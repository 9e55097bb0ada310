# src/cropclass/contracts/products.py
from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .core import Coordinates, FeatureVector
from .model import ConfidenceLevel, PredictionOutcome

_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+$")


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class ClassificationResult(BaseModel):
    """
    Registro final de una clasificación. Inmutable.
    La lista acumulada de resultados pertenece al llamador (sesión/UI).
    """
    model_config = ConfigDict(frozen=True)
    image_ref: str = ""
    features: FeatureVector
    prediction: PredictionOutcome
    confidence_level: ConfidenceLevel
    coordinates: Optional[Coordinates] = None
    timestamp: datetime
    processing_time_ms: float = Field(0.0, ge=0.0)
    model_version: str = "1.0.0"

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, dt: datetime) -> datetime:
        return _ensure_utc(dt)

    @field_validator("model_version")
    @classmethod
    def _semver(cls, v: str) -> str:
        if not _SEMVER_RE.match(v):
            raise ValueError("model_version debe ser SemVer (e.g., 1.0.0)")
        return v

    # atajos usados por los exportadores
    @property
    def label(self) -> str:
        return self.prediction.label

    @property
    def confidence(self) -> float:
        return self.prediction.confidence


class ExportFormat(str, Enum):
    CSV = "csv"
    GEOJSON = "geojson"
    PDF = "pdf"   # históricamente produce el reporte HTML

    @classmethod
    def values(cls) -> Tuple[str, ...]:
        return tuple(m.value for m in cls)


class ExportJob(BaseModel):
    """Efímero: se consume una vez para generar el artefacto."""
    model_config = ConfigDict(frozen=True)
    format: ExportFormat
    results: Tuple[ClassificationResult, ...]


class ExportArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)
    content: bytes
    content_type: str
    filename: str

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class StoredImage(BaseModel):
    model_config = ConfigDict(frozen=True)
    image_ref: str
    original_name: str
    size_bytes: int = Field(ge=0)
    mimetype: Optional[str] = None
    uploaded_at: datetime

    @field_validator("uploaded_at")
    @classmethod
    def _utc(cls, dt: datetime) -> datetime:
        return _ensure_utc(dt)


__all__ = [
    "ClassificationResult", "ExportFormat", "ExportJob", "ExportArtifact", "StoredImage",
]
