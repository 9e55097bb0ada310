# src/cropclass/ports/exporters.py
from __future__ import annotations

from typing import Protocol, runtime_checkable, Sequence
from ..contracts.products import ClassificationResult

@runtime_checkable
class ResultFormatterPort(Protocol):
    """
    Serializador puro de resultados (CSV/GeoJSON/HTML).
    Total: nunca falla con entradas bien formadas; los opcionales ausentes
    se sustituyen por "" o 0.
    """
    content_type: str
    extension: str

    def render(self, results: Sequence[ClassificationResult]) -> str: ...

__all__ = ["ResultFormatterPort"]
