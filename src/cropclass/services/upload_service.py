# src/cropclass/services/upload_service.py
from __future__ import annotations

"""
Ingesta de imágenes: valida tipo/extensión/tamaño y guarda en el ImageStore.
Devuelve un StoredImage cuyo `image_ref` consume el extractor de features.
"""

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import List, Optional

from ..config import UploadPolicy
from ..contracts.errors import UploadRejectedError
from ..contracts.products import StoredImage
from ..ports.image_store import ImageStorePort
from .result_assembler import Clock, utc_now
from .sanitize import sanitize_filename

_TIFF_EXTENSIONS = (".tif", ".tiff")


def file_extension(filename: str) -> str:
    return PurePosixPath(filename.replace("\\", "/")).suffix.lower()


@dataclass
class UploadService:
    policy: UploadPolicy
    store: ImageStorePort
    clock: Clock = utc_now

    def violations(self, filename: str, size: int, mimetype: Optional[str]) -> List[str]:
        p = self.policy
        errors: List[str] = []
        if size <= 0:
            errors.append("archivo vacío")
        if size > p.max_bytes:
            errors.append(
                f"archivo demasiado grande ({size / 1024 / 1024:.2f}MB). Máximo: {p.max_bytes / 1024 / 1024:g}MB"
            )
        ext = file_extension(filename)
        if ext not in p.allowed_extensions:
            errors.append(f"extensión no permitida {ext or '(ninguna)'!r}. Permitidas: {', '.join(p.allowed_extensions)}")
        # TIFF por extensión se acepta aunque el MIME no sea reconocido
        mime_ok = (mimetype or "").lower() in p.allowed_types or ext in _TIFF_EXTENSIONS
        if not mime_ok:
            errors.append(f"tipo de archivo no soportado {mimetype!r}. Permitidos: {', '.join(p.allowed_types)}")
        return errors

    def validate(self, filename: str, size: int, mimetype: Optional[str]) -> None:
        errors = self.violations(filename, size, mimetype)
        if errors:
            raise UploadRejectedError(errors, self.policy.allowed_types, self.policy.max_bytes)

    def ingest(self, filename: str, content: bytes, mimetype: Optional[str] = None) -> StoredImage:
        self.validate(filename, len(content), mimetype)
        ref = self.store.save(content, file_extension(filename))
        try:
            return StoredImage(
                image_ref=ref,
                original_name=sanitize_filename(PurePosixPath(filename.replace("\\", "/")).name) or ref,
                size_bytes=len(content),
                mimetype=mimetype,
                uploaded_at=self.clock(),
            )
        except Exception:
            # sin upload a medias: el archivo guardado se descarta
            self.store.delete(ref)
            raise
