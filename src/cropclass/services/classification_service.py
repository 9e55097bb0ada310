# src/cropclass/services/classification_service.py
from __future__ import annotations

"""
Servicio de clasificación por imagen, contracts-first.
Pipeline determinista:
  EXTRACT → PREDICT → CONFIDENCE → ASSEMBLE

No asume backends concretos: extractor y predictor van vía *ports*.
No usa Settings ni escribe en disco; tampoco registra logs.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..contracts.core import Coordinates
from ..contracts.products import ClassificationResult
from ..ports.feature_extraction import FeatureExtractorPort
from ..ports.image_store import ImageRef
from ..ports.predictor import PredictorPort
from .confidence_service import ConfidenceClassifier
from .result_assembler import Clock, assemble, utc_now


@dataclass
class ClassificationService:
    extractor: FeatureExtractorPort
    predictor: PredictorPort
    confidence: ConfidenceClassifier
    model_version: str = "1.0.0"
    clock: Clock = utc_now
    timer: Callable[[], float] = field(default=time.perf_counter)

    def classify(self, image_ref: ImageRef, coordinates: Optional[Coordinates] = None) -> ClassificationResult:
        t0 = self.timer()
        features = self.extractor.extract(image_ref)
        outcome = self.predictor.predict(features)
        level = self.confidence.classify(outcome.confidence)
        elapsed_ms = (self.timer() - t0) * 1000.0
        return assemble(
            features,
            outcome,
            level,
            coordinates,
            self.clock,
            image_ref=image_ref,
            processing_time_ms=elapsed_ms,
            model_version=self.model_version,
        )
