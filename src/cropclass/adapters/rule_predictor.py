# src/cropclass/adapters/rule_predictor.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Sequence

from ..contracts.core import ClassLabel, FeatureVector
from ..contracts.errors import InvalidFeatureError
from ..contracts.model import DecisionRule, PredictionOutcome, validate_rules
from ..ports.predictor import PredictorPort


@dataclass(frozen=True)
class RulePredictor(PredictorPort):
    """Clasificador placeholder basado en reglas (sin modelo entrenado).

    - Gana la primera regla cuyas condiciones se cumplen todas.
    - confidence = low + (high - low) * s, con s = margen normalizado mínimo
      de las condiciones respecto de sus umbrales (determinista).
    - probabilities: la masa restante (1 - confidence) se reparte en partes
      iguales entre las demás clases; suma 1.
    Reemplazable por un modelo real detrás de PredictorPort.
    """
    rules: Sequence[DecisionRule]
    classes_def: Sequence[ClassLabel]
    model_name: str = field(default="rules-v1")

    def __post_init__(self) -> None:
        if not self.rules:
            raise ValueError("RulePredictor requiere al menos una regla")
        validate_rules(self.rules, (c.name for c in self.classes_def))

    def name(self) -> str:
        return self.model_name

    def classes(self) -> Sequence[ClassLabel]:
        return self.classes_def

    def _check_domain(self, features: FeatureVector) -> None:
        bad = features.domain_violations()
        if bad:
            name, value, domain = bad[0]
            raise InvalidFeatureError(name, value, domain)

    def _distribution(self, label: str, confidence: float) -> Dict[str, float]:
        others = [c.name for c in self.classes_def if c.name != label]
        rest = (1.0 - confidence) / len(others) if others else 0.0
        probs = {c.name: rest for c in self.classes_def}
        probs[label] = confidence
        return probs

    def predict(self, features: FeatureVector) -> PredictionOutcome:
        self._check_domain(features)
        for rule in self.rules:
            if rule.matches(features):
                conf = round(rule.confidence(features), 3)
                return PredictionOutcome(
                    label=rule.label,
                    confidence=conf,
                    probabilities=self._distribution(rule.label, conf),
                    model=self.model_name,
                )
        # tabla de reglas incompleta para este vector
        raise InvalidFeatureError("ndvi", features.ndvi, "sin regla aplicable")
