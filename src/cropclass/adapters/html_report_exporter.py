# src/cropclass/adapters/html_report_exporter.py
from __future__ import annotations

"""
Reporte HTML estático (formato "pdf" histórico).
Adapter Jinja2 con autoescape: etiquetas y acciones llegan de configuración
y de la sesión, nunca se interpolan sin escapar.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from jinja2 import Environment, StrictUndefined

from ..contracts.core import ClassLabel
from ..contracts.products import ClassificationResult
from ..ports.exporters import ResultFormatterPort

REPORT_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{{ title }}</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 20px; color: #333; }
    .header { text-align: center; margin-bottom: 30px; }
    .stats { display: flex; justify-content: space-around; margin: 20px 0; }
    .stat-card { text-align: center; padding: 15px; border: 1px solid #ddd; border-radius: 8px; }
    .stat-value { font-size: 24px; font-weight: bold; }
    .results-table { width: 100%; border-collapse: collapse; margin-top: 20px; }
    .results-table th, .results-table td { border: 1px solid #ddd; padding: 8px; text-align: left; }
    .results-table th { background-color: #f2f2f2; }
    .swatch { display: inline-block; width: 10px; height: 10px; margin-right: 6px; }
    .confidence-high { color: #22c55e; font-weight: bold; }
    .confidence-medium { color: #eab308; font-weight: bold; }
    .confidence-low { color: #ef4444; font-weight: bold; }
    .notes { margin-top: 30px; padding: 15px; background-color: #f8f9fa; border-radius: 8px; }
  </style>
</head>
<body>
  <div class="header">
    <h1>{{ title }}</h1>
    <p>Generated on {{ generated_at.strftime("%Y-%m-%d") }}</p>
  </div>

  <div class="stats">
    <div class="stat-card"><h3>Total analysed</h3><p class="stat-value" id="total">{{ total }}</p></div>
    <div class="stat-card"><h3>Mean confidence</h3><p class="stat-value" id="mean-confidence">{{ "%.1f"|format(mean_confidence * 100) }}%</p></div>
    <div class="stat-card"><h3>Classes detected</h3><p class="stat-value" id="distinct-classes">{{ per_class|length }}</p></div>
  </div>

  <h2>Breakdown by class</h2>
  <ul>
  {%- for row in per_class %}
    <li><span class="swatch" style="background-color: {{ row.color }}"></span><strong>{{ row.title }}:</strong> {{ row.count }} ({{ "%.1f"|format(row.share * 100) }}%)</li>
  {%- endfor %}
  </ul>

  <h2>Detailed results</h2>
  <table class="results-table">
    <thead>
      <tr>
        <th>ID</th><th>Predicted class</th><th>Confidence</th><th>Level</th>
        <th>NDVI</th><th>Area (ha)</th><th>Recommended action</th>
      </tr>
    </thead>
    <tbody>
    {%- for row in rows %}
      <tr>
        <td>{{ row.id }}</td>
        <td>{{ row.title }}</td>
        <td class="{{ row.css }}">{{ "%.1f"|format(row.confidence * 100) }}%</td>
        <td>{{ row.level }}</td>
        <td>{{ row.ndvi }}</td>
        <td>{{ "%.2f"|format(row.area_ha) }}</td>
        <td>{{ row.action }}</td>
      </tr>
    {%- endfor %}
    </tbody>
  </table>

  <div class="notes">
    <h3>Methodological notes</h3>
    <p>Spectral indices (NDVI, EVI, SAVI) are derived from the uploaded imagery.
    Predictions come from a deterministic rule table ({{ models|join(", ") }}); confidence
    levels indicate how reliable each prediction is and which follow-up action is recommended.</p>
  </div>
</body>
</html>
"""


def confidence_css(confidence: float) -> str:
    """Banda de color: > 0.7 high, > 0.4 medium, resto low."""
    if confidence > 0.7:
        return "confidence-high"
    if confidence > 0.4:
        return "confidence-medium"
    return "confidence-low"


def summarize(results: Sequence[ClassificationResult]) -> Dict[str, Any]:
    """Estadísticas del reporte: total, confianza media y conteo por clase
    (en orden de primera aparición)."""
    total = len(results)
    counts: Dict[str, int] = {}
    for r in results:
        counts[r.prediction.label] = counts.get(r.prediction.label, 0) + 1
    mean = sum(r.prediction.confidence for r in results) / total if total else 0.0
    shares = {k: (v / total if total else 0.0) for k, v in counts.items()}
    return {"total": total, "mean_confidence": mean, "counts": counts, "shares": shares}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class HTMLReportExporter(ResultFormatterPort):
    title: str = "Crop classification report"
    classes: Sequence[ClassLabel] = ()
    clock: Callable[[], datetime] = _utc_now

    content_type = "text/html"
    extension = ".html"

    def __post_init__(self) -> None:
        env = Environment(autoescape=True, undefined=StrictUndefined, trim_blocks=False)
        self._template = env.from_string(REPORT_TEMPLATE)

    def _lookup(self) -> Mapping[str, ClassLabel]:
        return {c.name: c for c in self.classes}

    def context(self, results: Sequence[ClassificationResult], generated_at: Optional[datetime] = None) -> Dict[str, Any]:
        stats = summarize(results)
        labels = self._lookup()

        def title_of(name: str) -> str:
            c = labels.get(name)
            return c.title if c is not None else name

        def color_of(name: str) -> str:
            c = labels.get(name)
            return c.color.to_hex() if c is not None else "#C8C8C8"

        per_class: List[Dict[str, Any]] = [
            {"name": k, "title": title_of(k), "color": color_of(k), "count": v, "share": stats["shares"][k]}
            for k, v in stats["counts"].items()
        ]
        rows: List[Dict[str, Any]] = [
            {
                "id": i,
                "title": title_of(r.prediction.label),
                "confidence": r.prediction.confidence,
                "css": confidence_css(r.prediction.confidence),
                "level": r.confidence_level.level,
                "ndvi": r.features.ndvi,
                "area_ha": r.features.area_ha or 0.0,
                "action": r.confidence_level.action,
            }
            for i, r in enumerate(results, start=1)
        ]
        models = sorted({r.prediction.model for r in results}) or ["n/a"]
        return {
            "title": self.title,
            "generated_at": generated_at or self.clock(),
            "total": stats["total"],
            "mean_confidence": stats["mean_confidence"],
            "per_class": per_class,
            "rows": rows,
            "models": models,
        }

    def render(self, results: Sequence[ClassificationResult]) -> str:
        return self._template.render(**self.context(results))
