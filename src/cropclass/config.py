# src/cropclass/config.py
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .contracts.core import RGB8, ClassLabel
from .contracts.model import (
    Condition, ConfidenceLevel, DecisionRule, validate_rules, validate_tiers,
)

_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+$")

# ----------------------------
# Catálogos por defecto
# ----------------------------
DEFAULT_CLASSES: Tuple[ClassLabel, ...] = (
    ClassLabel(id=1, name="OilPalm", display_name="Oil palm", color=RGB8(r=230, g=159, b=0)),
    ClassLabel(id=2, name="Cacao", display_name="Cacao", color=RGB8(r=139, g=69, b=19)),
    ClassLabel(id=3, name="Forest", display_name="Forest", color=RGB8(r=34, g=139, b=34)),
)

DEFAULT_TIERS: Tuple[ConfidenceLevel, ...] = (
    ConfidenceLevel(level=5, threshold=0.8, label="Very high confidence", action="Automatic use recommended"),
    ConfidenceLevel(level=4, threshold=0.6, label="High confidence", action="Automatic mapping with spot checks"),
    ConfidenceLevel(level=3, threshold=0.4, label="Medium confidence", action="Visual verification recommended"),
    ConfidenceLevel(level=2, threshold=0.2, label="Low confidence", action="Field verification required"),
    ConfidenceLevel(level=1, threshold=0.0, label="Very low confidence", action="In-depth analysis required"),
)


def _c(feature: str, op: str, threshold: float) -> Condition:
    return Condition(feature=feature, op=op, threshold=threshold)  # type: ignore[arg-type]


# Tres ramas por NDVI: densa (> 0.8), media (> 0.6), rala (resto)
DEFAULT_RULES: Tuple[DecisionRule, ...] = (
    DecisionRule(label="Forest", when=(_c("ndvi", ">", 0.8), _c("evi", ">", 0.9)), band=(0.85, 0.95)),
    DecisionRule(label="OilPalm", when=(_c("ndvi", ">", 0.8), _c("evi", "<=", 0.9)), band=(0.75, 0.90)),
    DecisionRule(label="OilPalm", when=(_c("ndvi", ">", 0.6), _c("ndvi", "<=", 0.8), _c("savi", ">", 0.7)), band=(0.70, 0.90)),
    DecisionRule(label="Cacao", when=(_c("ndvi", ">", 0.6), _c("ndvi", "<=", 0.8), _c("savi", "<=", 0.7)), band=(0.65, 0.90)),
    DecisionRule(label="Cacao", when=(_c("ndvi", "<=", 0.6),), band=(0.45, 0.75)),
)


class UploadPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)
    max_bytes: int = Field(10 * 1024 * 1024, gt=0)
    allowed_types: Tuple[str, ...] = ("image/jpeg", "image/png", "image/tiff", "image/geotiff")
    allowed_extensions: Tuple[str, ...] = (".jpg", ".jpeg", ".png", ".tif", ".tiff")

    @field_validator("allowed_extensions")
    @classmethod
    def _dotted_lower(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(e.lower() if e.startswith(".") else f".{e.lower()}" for e in v)


class RateLimitRule(BaseModel):
    model_config = ConfigDict(frozen=True)
    max_requests: int = Field(gt=0)
    window_s: float = Field(gt=0)


def _default_rate_limits() -> Dict[str, RateLimitRule]:
    return {
        "upload": RateLimitRule(max_requests=10, window_s=15 * 60),
        "classify": RateLimitRule(max_requests=5, window_s=60),
        "export": RateLimitRule(max_requests=100, window_s=15 * 60),
    }


class Settings(BaseSettings):
    """
    Config unificada del proyecto. No toca disco.
    Debe ser construida y provista por composition/di.py (CLI/handlers).
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CROP_",
        env_nested_delimiter="__",
        extra="forbid",
        frozen=True,
    )

    # --- básicos ---
    project_root: Path = Path(".")

    # --- estructura de trabajo (relativa a project_root) ---
    upload_dir: Path = Path("uploads")
    export_dir: Path = Path("exports")
    session_file: Path = Path("work/session.jsonl")

    # --- modelo ---
    model_version: str = "1.0.0"
    pixel_size_m: float = Field(10.0, gt=0)   # GSD Sentinel-2 (m)

    # --- dominio ---
    classes: Tuple[ClassLabel, ...] = DEFAULT_CLASSES
    confidence_tiers: Tuple[ConfidenceLevel, ...] = DEFAULT_TIERS
    decision_rules: Tuple[DecisionRule, ...] = DEFAULT_RULES

    # --- capa de entrada ---
    upload: UploadPolicy = UploadPolicy()
    rate_limits: Dict[str, RateLimitRule] = Field(default_factory=_default_rate_limits)
    rate_limit_capacity: int = Field(10_000, gt=0)

    report_title: str = "Crop classification report"

    # ----------------------------
    # Normalizadores / validadores
    # ----------------------------
    @field_validator("project_root", mode="before")
    @classmethod
    def _abs_root(cls, v: Path | str) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("upload_dir", "export_dir", "session_file", mode="after")
    @classmethod
    def _rel_to_root(cls, p: Path, info) -> Path:
        root: Optional[Path] = info.data.get("project_root")
        if p.is_absolute() or root is None:
            return p
        return root / p

    @field_validator("model_version")
    @classmethod
    def _semver(cls, v: str) -> str:
        if not _SEMVER_RE.match(v):
            raise ValueError("model_version debe ser SemVer (e.g., 1.0.0)")
        return v

    @field_validator("classes")
    @classmethod
    def _unique_classes(cls, v: Tuple[ClassLabel, ...]) -> Tuple[ClassLabel, ...]:
        if not v:
            raise ValueError("classes no puede ser vacío")
        names = [c.name for c in v]
        if len(set(names)) != len(names):
            raise ValueError(f"classes con nombres repetidos: {names}")
        return v

    @field_validator("confidence_tiers")
    @classmethod
    def _tiers(cls, v: Tuple[ConfidenceLevel, ...]) -> Tuple[ConfidenceLevel, ...]:
        return validate_tiers(v)

    @model_validator(mode="after")
    def _rules_vs_classes(self) -> "Settings":
        if not self.decision_rules:
            raise ValueError("decision_rules no puede ser vacío")
        validate_rules(self.decision_rules, self.class_names())
        return self

    # ----------------------------
    # Helpers puros (sin side-effects)
    # ----------------------------
    def class_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.classes)

    def class_by_name(self, name: str) -> Optional[ClassLabel]:
        for c in self.classes:
            if c.name == name:
                return c
        return None

    def rate_limit(self, scope: str) -> Optional[RateLimitRule]:
        return self.rate_limits.get(scope)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Instancia cacheada. Úsala SOLO desde composition/di.py o CLI.
    Prohibido usarla en services/ (dominio). Para tests, recuerda limpiar:
        get_settings.cache_clear()
    """
    return Settings()
