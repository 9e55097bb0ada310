# src/cropclass/handlers.py
from __future__ import annotations

"""
Handlers de solicitud independientes del framework HTTP (upload, classify, export).

Cada handler:
  1) aplica rate limiting por (scope, cliente)
  2) sanea strings (rechaza patrones de inyección) y valida el payload con modelos pydantic
  3) delega en los servicios del pipeline
  4) traduce errores tipados a (status, body, headers)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .composition.di import Pipeline
from .contracts.core import Coordinates
from .contracts.errors import (
    CropClassError, DomainError, EmptyInputError, InvalidFeatureError, InvalidRequestError,
    NotFoundError, RateLimitExceededError, UnsupportedFormatError, UploadRejectedError,
)
from .contracts.products import ClassificationResult
from .services.rate_limit_service import SlidingWindowRateLimiter
from .services.sanitize import detect_injection, sanitize_filename, sanitize_text

logger = logging.getLogger(__name__)

_STATUS: Mapping[Type[CropClassError], int] = {
    NotFoundError: 404,
    InvalidFeatureError: 422,
    DomainError: 422,
    UnsupportedFormatError: 400,
    EmptyInputError: 400,
    UploadRejectedError: 400,
    InvalidRequestError: 400,
    RateLimitExceededError: 429,
}


def status_for(err: CropClassError) -> int:
    for cls in type(err).__mro__:
        if cls in _STATUS:
            return _STATUS[cls]  # type: ignore[index]
    return 500


# -------------------------
# Payloads
# -------------------------
class ClassificationRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    image_ref: str = Field(min_length=1, validation_alias=AliasChoices("image_ref", "filePath"))
    coordinates: Optional[Coordinates] = None


class ExportRequest(BaseModel):
    model_config = ConfigDict(frozen=True)
    format: str
    results: List[ClassificationResult] = []


def _validation_messages(e: ValidationError) -> List[str]:
    return [f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}" for err in e.errors()]


def clean_payload(value: Any, loc: str = "payload") -> Any:
    """
    Copia saneada del payload: rechaza strings con patrones de inyección
    y limpia el resto con `sanitize_text`. Recorre dicts y listas.
    """
    if isinstance(value, str):
        if detect_injection(value):
            raise InvalidRequestError([f"{loc}: contenido no permitido"], "entrada rechazada")
        return sanitize_text(value)
    if isinstance(value, Mapping):
        return {k: clean_payload(v, f"{loc}.{k}") for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [clean_payload(v, f"{loc}[{i}]") for i, v in enumerate(value)]
    return value


# -------------------------
# Respuesta
# -------------------------
@dataclass(frozen=True)
class HandlerResponse:
    status: int
    body: Union[bytes, Dict[str, Any]]
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def error_response(err: CropClassError) -> HandlerResponse:
    headers: Dict[str, str] = {"Content-Type": "application/json"}
    if isinstance(err, RateLimitExceededError):
        headers["Retry-After"] = str(err.retry_after_s)
    return HandlerResponse(status=status_for(err), body=err.to_dict(), headers=headers)


@dataclass
class ApiHandlers:
    pipeline: Pipeline
    limiter: SlidingWindowRateLimiter

    def _limit(self, scope: str, client_id: str) -> None:
        rule = self.pipeline.settings.rate_limit(scope)
        if rule is not None:
            self.limiter.enforce(scope, client_id, rule)

    def _fail(self, scope: str, client_id: str, err: CropClassError) -> HandlerResponse:
        logger.warning("%s rechazado (cliente=%s): %s %s", scope, client_id, err.code, err.message)
        return error_response(err)

    # --------------- upload ---------------
    def upload(self, client_id: str, filename: str, content: bytes, mimetype: Optional[str] = None) -> HandlerResponse:
        try:
            self._limit("upload", client_id)
            stored = self.pipeline.uploads.ingest(filename, content, mimetype)
        except CropClassError as e:
            return self._fail("upload", client_id, e)
        logger.info("upload ok %s (%d bytes)", stored.image_ref, stored.size_bytes)
        return HandlerResponse(
            status=200,
            body={"success": True, "file": stored.model_dump(mode="json")},
            headers={"Content-Type": "application/json"},
        )

    # --------------- classify ---------------
    def classify(self, client_id: str, payload: Mapping[str, Any]) -> HandlerResponse:
        try:
            self._limit("classify", client_id)
            try:
                req = ClassificationRequest.model_validate(clean_payload(payload))
            except ValidationError as e:
                raise InvalidRequestError(_validation_messages(e)) from None
            image_ref = sanitize_filename(req.image_ref.replace("\\", "/").rsplit("/", 1)[-1])
            result = self.pipeline.classification.classify(image_ref, req.coordinates)
        except CropClassError as e:
            return self._fail("classify", client_id, e)
        logger.info("classify ok %s -> %s (%.3f)", result.image_ref, result.label, result.confidence)
        return HandlerResponse(
            status=200,
            body={"success": True, "result": result.model_dump(mode="json")},
            headers={"Content-Type": "application/json"},
        )

    # --------------- export ---------------
    def export(self, client_id: str, payload: Mapping[str, Any]) -> HandlerResponse:
        try:
            self._limit("export", client_id)
            try:
                req = ExportRequest.model_validate(clean_payload(payload))
            except ValidationError as e:
                raise InvalidRequestError(_validation_messages(e)) from None
            artifact = self.pipeline.exports.export(req.format, req.results)
        except CropClassError as e:
            return self._fail("export", client_id, e)
        logger.info("export ok %s (%d bytes)", artifact.filename, artifact.size_bytes)
        return HandlerResponse(
            status=200,
            body=artifact.content,
            headers={
                "Content-Type": artifact.content_type,
                "Content-Disposition": f'attachment; filename="{artifact.filename}"',
                "Cache-Control": "no-cache",
            },
        )
