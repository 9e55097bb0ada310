# src/cropclass/ports/image_store.py
from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

ImageRef = str

@runtime_checkable
class ImageStorePort(Protocol):
    """
    Almacén de imágenes subidas.
    Reglas: `resolve()` lanza NotFoundError si la referencia no existe.
    """
    def save(self, content: bytes, suffix: str) -> ImageRef: ...
    def resolve(self, image_ref: ImageRef) -> Path: ...
    def delete(self, image_ref: ImageRef) -> None: ...

__all__ = ["ImageStorePort", "ImageRef"]
