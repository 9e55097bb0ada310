# src/cropclass/adapters/geojson_exporter.py
from __future__ import annotations

import json
from typing import Any, Dict, Sequence

from ..contracts.products import ClassificationResult
from ..ports.exporters import ResultFormatterPort


def result_feature(index: int, r: ClassificationResult) -> Dict[str, Any]:
    """Feature Point en [lng, lat]; sin coordenadas -> [0, 0] y latitude/longitude 0."""
    c = r.coordinates
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [c.lng if c else 0, c.lat if c else 0],
        },
        "properties": {
            "id": index,
            "predicted_class": r.prediction.label,
            "confidence": r.prediction.confidence,
            "confidence_level": r.confidence_level.level,
            "recommended_action": r.confidence_level.action,
            "ndvi": r.features.ndvi,
            "evi": r.features.evi,
            "savi": r.features.savi,
            "area_ha": r.features.area_ha,
            "latitude": c.lat if c else 0,
            "longitude": c.lng if c else 0,
            "timestamp": r.timestamp.isoformat(),
        },
    }


def feature_collection(results: Sequence[ClassificationResult]) -> Dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [result_feature(i, r) for i, r in enumerate(results, start=1)],
    }


class GeoJSONExporter(ResultFormatterPort):
    content_type = "application/geo+json"
    extension = ".geojson"

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def render(self, results: Sequence[ClassificationResult]) -> str:
        return json.dumps(feature_collection(results), indent=self.indent, ensure_ascii=False)
