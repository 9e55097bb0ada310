# src/cropclass/services/rate_limit_service.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from ..config import RateLimitRule
from ..contracts.errors import RateLimitExceededError
from ..ports.rate_limit import RateLimitStorePort


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: float   # segundos (mismo reloj que el limitador)

    def retry_after(self, now: float) -> float:
        return max(0.0, self.reset_at - now)


@dataclass
class SlidingWindowRateLimiter:
    """
    Ventana deslizante por clave sobre un store inyectado.
    Sin estado global: reloj y store se pasan al construir.
    """
    store: RateLimitStorePort
    clock: Callable[[], float] = field(default=time.monotonic)

    def check(self, key: str, rule: RateLimitRule) -> RateLimitDecision:
        now = self.clock()
        window_start = now - rule.window_s
        hits = [t for t in self.store.get(key) if t > window_start]
        if len(hits) >= rule.max_requests:
            self.store.put(key, hits)
            return RateLimitDecision(allowed=False, remaining=0, reset_at=min(hits) + rule.window_s)
        hits.append(now)
        self.store.put(key, hits)
        return RateLimitDecision(
            allowed=True,
            remaining=rule.max_requests - len(hits),
            reset_at=now + rule.window_s,
        )

    def enforce(self, scope: str, client_id: str, rule: RateLimitRule) -> RateLimitDecision:
        decision = self.check(f"{scope}:{client_id}", rule)
        if not decision.allowed:
            raise RateLimitExceededError(scope, decision.retry_after(self.clock()))
        return decision

    def reset(self) -> None:
        self.store.reset()
