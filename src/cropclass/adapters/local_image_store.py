# src/cropclass/adapters/local_image_store.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from ..contracts.errors import NotFoundError
from ..ports.image_store import ImageRef, ImageStorePort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalImageStore(ImageStorePort):
    """Almacén en disco: una carpeta plana, referencias = nombres de archivo."""
    root: Path

    def _path(self, image_ref: ImageRef) -> Path:
        # solo basename: evita escapar de la carpeta con rutas relativas
        name = Path(str(image_ref).replace("\\", "/")).name
        if not name or name in (".", ".."):
            raise NotFoundError(str(image_ref), "referencia de imagen vacía")
        return self.root / name

    def save(self, content: bytes, suffix: str) -> ImageRef:
        self.root.mkdir(parents=True, exist_ok=True)
        ref = f"{uuid.uuid4().hex}{suffix.lower()}"
        (self.root / ref).write_bytes(content)
        logger.info("imagen guardada %s (%d bytes)", ref, len(content))
        return ref

    def resolve(self, image_ref: ImageRef) -> Path:
        p = self._path(image_ref)
        if not p.is_file():
            raise NotFoundError(str(image_ref))
        logger.debug("imagen %s -> %s", image_ref, p)
        return p

    def delete(self, image_ref: ImageRef) -> None:
        p = self._path(image_ref)
        if p.is_file():
            p.unlink()
            logger.info("imagen eliminada %s", image_ref)
