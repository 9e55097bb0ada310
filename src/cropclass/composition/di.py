# src/cropclass/composition/di.py
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..adapters.csv_exporter import CSVExporter
from ..adapters.geojson_exporter import GeoJSONExporter
from ..adapters.html_report_exporter import HTMLReportExporter
from ..adapters.jsonl_result_log import JsonlResultLog
from ..adapters.local_image_store import LocalImageStore
from ..adapters.memory_rate_limit_store import InMemoryRateLimitStore
from ..adapters.raster_feature_extractor import RasterFeatureExtractor
from ..adapters.rule_predictor import RulePredictor
from ..config import Settings
from ..contracts.errors import InvalidRequestError
from ..contracts.model import ConfidenceLevel
from ..contracts.products import ExportFormat
from ..services.classification_service import ClassificationService
from ..services.confidence_service import ConfidenceClassifier
from ..services.export_service import ExportService
from ..services.rate_limit_service import SlidingWindowRateLimiter
from ..services.result_assembler import Clock, utc_now
from ..services.upload_service import UploadService

CONFIG_DIR = "config"


def _read_structured(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def load_settings_from_yaml(path: Path, **overrides: Any) -> Settings:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    data.update(overrides)
    return Settings(**data)


def load_confidence_tiers(path: Path) -> tuple[ConfidenceLevel, ...]:
    items = _read_structured(path)
    out: list[ConfidenceLevel] = []
    for it in items:
        out.append(
            ConfidenceLevel(
                level=int(it["level"]),
                threshold=float(it["threshold"]),
                label=str(it["label"]),
                action=str(it["action"]),
            )
        )
    return tuple(out)


def build_settings(project_root: Path, config_file: Optional[Path] = None) -> Settings:
    """
    Settings desde `<root>/config/settings.yaml` (o `config_file`), y si existe,
    la tabla de niveles desde `<root>/config/confidence_tiers.json`.
    Sin archivo de config: valores por defecto + variables CROP_*.
    Un `config_file` explícito que no existe es un error.
    """
    if config_file is not None and not config_file.is_file():
        msg = f"no existe el archivo de configuración {config_file}"
        raise InvalidRequestError([msg], msg)
    cfg = config_file or (project_root / CONFIG_DIR / "settings.yaml")
    if cfg.exists():
        st = load_settings_from_yaml(cfg.resolve(), project_root=str(project_root))
    else:
        st = Settings(project_root=project_root)
    tiers_json = (project_root / CONFIG_DIR / "confidence_tiers.json").resolve()
    if tiers_json.exists():
        # revalida la tabla completa (orden, catch-all)
        data = st.model_dump()
        data["confidence_tiers"] = load_confidence_tiers(tiers_json)
        st = Settings(**data)
    return st


# ----------------------
# Wiring
# ----------------------

@dataclass(frozen=True)
class Pipeline:
    settings: Settings
    store: LocalImageStore
    classification: ClassificationService
    exports: ExportService
    uploads: UploadService

    def session_log(self, path: Optional[Path] = None) -> JsonlResultLog:
        return JsonlResultLog(path or self.settings.session_file)


def build_pipeline(settings: Settings, clock: Clock = utc_now) -> Pipeline:
    store = LocalImageStore(root=settings.upload_dir)
    extractor = RasterFeatureExtractor(store=store, pixel_size_m=settings.pixel_size_m)
    predictor = RulePredictor(rules=settings.decision_rules, classes_def=settings.classes)
    confidence = ConfidenceClassifier.from_table(settings.confidence_tiers)
    classification = ClassificationService(
        extractor=extractor,
        predictor=predictor,
        confidence=confidence,
        model_version=settings.model_version,
        clock=clock,
    )
    exports = ExportService(
        formatters={
            ExportFormat.CSV: CSVExporter(),
            ExportFormat.GEOJSON: GeoJSONExporter(),
            ExportFormat.PDF: HTMLReportExporter(title=settings.report_title, classes=settings.classes, clock=clock),
        },
        clock=clock,
    )
    uploads = UploadService(policy=settings.upload, store=store, clock=clock)
    return Pipeline(
        settings=settings,
        store=store,
        classification=classification,
        exports=exports,
        uploads=uploads,
    )


def build_handlers(settings: Settings, clock: Clock = utc_now):
    # import local: handlers depende de composition solo en esta dirección
    from ..handlers import ApiHandlers

    pipeline = build_pipeline(settings, clock=clock)
    limiter = SlidingWindowRateLimiter(store=InMemoryRateLimitStore(settings.rate_limit_capacity))
    return ApiHandlers(pipeline=pipeline, limiter=limiter)
