# src/cropclass/ports/result_log.py
from __future__ import annotations

from typing import Protocol, runtime_checkable, List
from ..contracts.products import ClassificationResult

@runtime_checkable
class ResultLogPort(Protocol):
    """Lista ordenada de resultados de una sesión (propiedad del llamador)."""
    def append(self, result: ClassificationResult) -> None: ...
    def load(self) -> List[ClassificationResult]: ...
    def clear(self) -> None: ...

__all__ = ["ResultLogPort"]
