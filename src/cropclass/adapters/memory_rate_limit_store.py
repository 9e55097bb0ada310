# src/cropclass/adapters/memory_rate_limit_store.py
from __future__ import annotations

from collections import OrderedDict
from typing import Sequence, Tuple

from ..ports.rate_limit import RateLimitStorePort


class InMemoryRateLimitStore(RateLimitStorePort):
    """
    Store acotado en memoria. Al superar `capacity` claves descarta la
    usada hace más tiempo (LRU). Una instancia por conjunto de handlers.
    """
    def __init__(self, capacity: int = 10_000) -> None:
        if capacity <= 0:
            raise ValueError("capacity debe ser > 0")
        self.capacity = capacity
        self._hits: "OrderedDict[str, Tuple[float, ...]]" = OrderedDict()

    def get(self, key: str) -> Sequence[float]:
        hits = self._hits.get(key, ())
        if key in self._hits:
            self._hits.move_to_end(key)
        return hits

    def put(self, key: str, hits: Sequence[float]) -> None:
        if not hits:
            self._hits.pop(key, None)
            return
        self._hits[key] = tuple(hits)
        self._hits.move_to_end(key)
        while len(self._hits) > self.capacity:
            self._hits.popitem(last=False)

    def reset(self) -> None:
        self._hits.clear()

    def __len__(self) -> int:
        return len(self._hits)
