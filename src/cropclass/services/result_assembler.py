# src/cropclass/services/result_assembler.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from ..contracts.core import Coordinates, FeatureVector
from ..contracts.model import ConfidenceLevel, PredictionOutcome
from ..contracts.products import ClassificationResult

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def assemble(
    features: FeatureVector,
    outcome: PredictionOutcome,
    level: ConfidenceLevel,
    coordinates: Optional[Coordinates] = None,
    clock: Clock = utc_now,
    *,
    image_ref: str = "",
    processing_time_ms: float = 0.0,
    model_version: str = "1.0.0",
) -> ClassificationResult:
    """Combina salidas de extractor/predictor/niveles en un resultado. Sin cómputo."""
    return ClassificationResult(
        image_ref=image_ref,
        features=features,
        prediction=outcome,
        confidence_level=level,
        coordinates=coordinates,
        timestamp=clock(),
        processing_time_ms=max(0.0, float(processing_time_ms)),
        model_version=model_version,
    )
