# src/cropclass/contracts/core.py
from __future__ import annotations

import math
from types import MappingProxyType
from typing import List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

# -------------------------
# Índices y features
# -------------------------
IndexName = Literal["ndvi", "evi", "savi"]
FeatureName = Literal[
    "ndvi", "evi", "savi", "mean_red", "mean_nir", "std_red", "std_nir", "area_ha"
]

# (min, max, min_inclusivo) por feature; None = sin cota superior
FEATURE_DOMAINS: Mapping[str, Tuple[float, Optional[float], bool]] = MappingProxyType({
    "ndvi": (-1.0, 1.0, True),
    "evi": (-1.0, 1.0, True),
    "savi": (-1.0, 1.0, True),
    "mean_red": (0.0, None, True),
    "mean_nir": (0.0, None, True),
    "std_red": (0.0, None, True),
    "std_nir": (0.0, None, True),
    "area_ha": (0.0, None, False),
})

ClassId = PositiveInt

# -------------------------
# Colores tipados
# -------------------------
class RGB8(BaseModel):
    model_config = ConfigDict(frozen=True)
    r: int = Field(200, ge=0, le=255)
    g: int = Field(200, ge=0, le=255)
    b: int = Field(200, ge=0, le=255)
    def as_tuple(self) -> tuple[int, int, int]: return (self.r, self.g, self.b)
    def to_hex(self) -> str: return f"#{self.r:02X}{self.g:02X}{self.b:02X}"

# -------------------------
# Etiquetas de clase
# -------------------------
class ClassLabel(BaseModel):
    """
    Clase del catálogo (configuración, no tipo del lenguaje).
    `name` es el identificador que viaja en predicciones y exportes.
    """
    model_config = ConfigDict(frozen=True)
    id: ClassId
    name: str
    display_name: Optional[str] = None
    color: RGB8 = RGB8()

    @field_validator("name")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("name no puede ser vacío")
        return v2

    @property
    def title(self) -> str:
        return self.display_name or self.name

# -------------------------
# Coordenadas
# -------------------------
class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)

# -------------------------
# Vector de features
# -------------------------
class FeatureVector(BaseModel):
    """
    Vector de forma fija, creado una vez por solicitud.
    No se clampa al construir: el dominio lo verifica el predictor
    (ver `domain_violations`).
    """
    model_config = ConfigDict(frozen=True)
    ndvi: float
    evi: float
    savi: float
    mean_red: float
    mean_nir: float
    std_red: float
    std_nir: float
    area_ha: float

    def value(self, name: str) -> float:
        return float(getattr(self, name))

    def domain_violations(self) -> List[Tuple[str, float, str]]:
        out: List[Tuple[str, float, str]] = []
        for name, (lo, hi, lo_incl) in FEATURE_DOMAINS.items():
            v = self.value(name)
            if not math.isfinite(v):
                out.append((name, v, _domain_str(lo, hi, lo_incl)))
                continue
            below = v < lo if lo_incl else v <= lo
            above = hi is not None and v > hi
            if below or above:
                out.append((name, v, _domain_str(lo, hi, lo_incl)))
        return out


def _domain_str(lo: float, hi: Optional[float], lo_incl: bool) -> str:
    left = "[" if lo_incl else "("
    right = f"{hi}]" if hi is not None else "inf)"
    return f"{left}{lo}, {right}"


__all__ = [
    "IndexName", "FeatureName", "FEATURE_DOMAINS", "ClassId", "RGB8",
    "ClassLabel", "Coordinates", "FeatureVector",
]
