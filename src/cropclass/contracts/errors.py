# src/cropclass/contracts/errors.py
from __future__ import annotations

"""
Errores tipados del pipeline.

Todos llevan un `code` estable (para handlers/CLI) y un mensaje legible.
Son locales, deterministas y no reintentables: nunca se recuperan en silencio.
"""

from typing import Any, Dict, Optional, Sequence


class CropClassError(Exception):
    """Base de todos los errores del proyecto."""
    code: str = "CROPCLASS_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message: str = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": dict(self.details)}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class NotFoundError(CropClassError):
    """La referencia de imagen no resuelve a datos de imagen legibles."""
    code = "NOT_FOUND"

    def __init__(self, image_ref: str, reason: str = "imagen no encontrada") -> None:
        super().__init__(f"{reason}: {image_ref!r}", image_ref=image_ref)
        self.image_ref = image_ref


class InvalidFeatureError(CropClassError, ValueError):
    code = "INVALID_FEATURE"

    def __init__(self, feature: str, value: Any, domain: str) -> None:
        super().__init__(
            f"feature {feature}={value!r} fuera de dominio {domain}",
            feature=feature, value=value, domain=domain,
        )
        self.feature = feature
        self.value = value


class DomainError(CropClassError, ValueError):
    """Confianza fuera de [0, 1]."""
    code = "DOMAIN_ERROR"

    def __init__(self, value: Any) -> None:
        super().__init__(f"confianza {value!r} fuera de [0, 1]", value=value)
        self.value = value


class UnsupportedFormatError(CropClassError):
    code = "UNSUPPORTED_FORMAT"

    def __init__(self, fmt: Any, allowed: Sequence[str]) -> None:
        allowed_t = tuple(allowed)
        super().__init__(
            f"formato no soportado: {fmt!r}. Usa: {', '.join(allowed_t)}",
            format=fmt, allowed=list(allowed_t),
        )
        self.format = fmt
        self.allowed = allowed_t


class EmptyInputError(CropClassError):
    code = "EMPTY_INPUT"

    def __init__(self, message: str = "no hay resultados para exportar") -> None:
        super().__init__(message)


class UploadRejectedError(CropClassError):
    code = "UPLOAD_REJECTED"

    def __init__(self, errors: Sequence[str], allowed_types: Sequence[str], max_bytes: int) -> None:
        errs = list(errors)
        super().__init__(
            "archivo rechazado: " + "; ".join(errs),
            errors=errs, allowed_types=list(allowed_types), max_bytes=max_bytes,
        )
        self.errors = errs


class RateLimitExceededError(CropClassError):
    code = "RATE_LIMITED"

    def __init__(self, scope: str, retry_after_s: float) -> None:
        retry = max(0, int(round(retry_after_s)))
        super().__init__(
            f"demasiadas solicitudes ({scope}). Reintenta en {retry}s",
            scope=scope, retry_after=retry,
        )
        self.retry_after_s = retry


class InvalidRequestError(CropClassError):
    code = "INVALID_REQUEST"

    def __init__(self, errors: Sequence[str], message: Optional[str] = None) -> None:
        errs = list(errors)
        super().__init__(message or "datos inválidos", errors=errs)
        self.errors = errs


__all__ = [
    "CropClassError", "NotFoundError", "InvalidFeatureError", "DomainError",
    "UnsupportedFormatError", "EmptyInputError", "UploadRejectedError",
    "RateLimitExceededError", "InvalidRequestError",
]
