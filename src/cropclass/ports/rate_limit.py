# src/cropclass/ports/rate_limit.py
from __future__ import annotations

from typing import Protocol, runtime_checkable, Sequence

@runtime_checkable
class RateLimitStorePort(Protocol):
    """Marcas de tiempo (s) de solicitudes por clave. Inyectable y reseteable."""
    def get(self, key: str) -> Sequence[float]: ...
    def put(self, key: str, hits: Sequence[float]) -> None: ...
    def reset(self) -> None: ...

__all__ = ["RateLimitStorePort"]
