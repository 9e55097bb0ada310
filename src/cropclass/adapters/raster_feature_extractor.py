# src/cropclass/adapters/raster_feature_extractor.py
from __future__ import annotations

"""
Extractor de features espectrales por imagen (determinista).

Lectura:
  - TIFF/GeoTIFF (multibanda) vía tifffile
  - JPEG/PNG vía Pillow
Disposición de bandas:
  - >= 4 bandas: (blue, green, red, nir) = B02, B03, B04, B08 de Sentinel-2
  - 3 bandas: composición infrarroja color (nir, red, green); blue ≈ green
Sin georreferencia: el área sale de width*height*pixel_size_m².
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

import numpy as np
import tifffile
from PIL import Image

from ..contracts.core import FeatureVector
from ..contracts.errors import NotFoundError
from ..ports.feature_extraction import FeatureExtractorPort
from ..ports.image_store import ImageRef, ImageStorePort

logger = logging.getLogger(__name__)

_TIFF_SUFFIXES = (".tif", ".tiff")
_EPS = 1e-12


def ensure_float01(arr: np.ndarray) -> np.ndarray:
    """uint8 -> /255; reflectancias escaladas 0..10000 -> /10000; clip 0..1."""
    if arr.dtype == np.uint8:
        a = arr.astype("float64") / 255.0
    else:
        a = arr.astype("float64", copy=False)
        if a.size and np.nanmax(a) > 1.0:
            a = a / 10000.0
    return np.clip(a, 0.0, 1.0)


def _to_bands_first(arr: np.ndarray, axes: str) -> np.ndarray:
    """
    Reordena a (C, H, W) según los ejes declarados por tifffile
    (p.ej. 'SYX' planar, 'YXS' intercalado, 'IYX' páginas apiladas).
    """
    if arr.ndim != len(axes):
        raise ValueError(f"ejes {axes!r} no coinciden con la forma {arr.shape}")
    if arr.ndim == 2:
        return arr[np.newaxis, ...]
    if arr.ndim != 3:
        raise ValueError(f"forma de imagen no soportada: {arr.shape} ({axes})")
    # muestras por píxel (S/C) primero; si no hay, el eje que no es Y/X
    band_axis = next((axes.index(a) for a in "SC" if a in axes), None)
    if band_axis is None:
        band_axis = next(i for i, a in enumerate(axes) if a not in "YX")
    return np.moveaxis(arr, band_axis, 0)


def _read_tiff(path: Path) -> np.ndarray:
    with tifffile.TiffFile(path) as tif:
        series = tif.series[0]
        arr = np.asarray(series.asarray())
        axes = series.axes
    return _to_bands_first(arr, axes)


def _safe_ratio(num: np.ndarray, den: np.ndarray) -> np.ndarray:
    out = np.zeros_like(num)
    ok = np.abs(den) > _EPS
    out[ok] = num[ok] / den[ok]
    return out


@dataclass(frozen=True)
class RasterFeatureExtractor(FeatureExtractorPort):
    store: ImageStorePort
    pixel_size_m: float = 10.0

    # --------------- lectura ---------------
    def _read(self, path: Path) -> np.ndarray:
        if path.suffix.lower() in _TIFF_SUFFIXES:
            return _read_tiff(path)
        with Image.open(path) as im:
            # alfa/paleta/gris -> 3 canales
            rgb = im.convert("RGB") if im.mode != "RGB" else im
            arr = np.asarray(rgb)
        return np.moveaxis(arr, -1, 0)

    def read_bands(self, image_ref: ImageRef) -> Dict[str, np.ndarray]:
        path = self.store.resolve(image_ref)
        try:
            data = self._read(path)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning("no se pudo leer %s: %s", path, e)
            raise NotFoundError(image_ref, "datos de imagen ilegibles") from e

        count = data.shape[0]
        if count < 3:
            raise NotFoundError(image_ref, f"se requieren al menos 3 bandas (hay {count})")
        if count >= 4:
            blue, green, red, nir = data[0], data[1], data[2], data[3]
        else:
            nir, red, green = data[0], data[1], data[2]
            blue = green
        logger.debug("leído %s: %d bandas, %sx%s", path.name, count, data.shape[2], data.shape[1])
        return {
            "blue": ensure_float01(blue),
            "green": ensure_float01(green),
            "red": ensure_float01(red),
            "nir": ensure_float01(nir),
        }

    # --------------- FeatureExtractorPort ---------------
    def extract(self, image_ref: ImageRef) -> FeatureVector:
        b = self.read_bands(image_ref)
        red, nir, blue = b["red"], b["nir"], b["blue"]

        ndvi = _safe_ratio(nir - red, nir + red)
        savi = _safe_ratio(1.5 * (nir - red), nir + red + 0.5)
        evi = np.clip(_safe_ratio(2.5 * (nir - red), nir + 6.0 * red - 7.5 * blue + 1.0), -1.0, 1.0)

        h, w = red.shape
        area_ha = (w * h * self.pixel_size_m ** 2) / 10_000.0
        return FeatureVector(
            ndvi=round(float(np.mean(ndvi)), 3),
            evi=round(float(np.mean(evi)), 3),
            savi=round(float(np.mean(savi)), 3),
            mean_red=round(float(np.mean(red)), 4),
            mean_nir=round(float(np.mean(nir)), 4),
            std_red=round(float(np.std(red)), 4),
            std_nir=round(float(np.std(nir)), 4),
            area_ha=area_ha,
        )
