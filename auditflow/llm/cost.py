"""Per-provider record of LLM calls and their estimated cost."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from pydantic import BaseModel

from ..models import ModelTier

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100

# USD per million tokens (input, output).
RATES: Dict[str, tuple] = {
    "standard": (3.0, 15.0),
    "advanced": (15.0, 75.0),
}


class CallRecord(BaseModel):
    timestamp: float
    tier: ModelTier
    role: str
    input_tokens: int
    output_tokens: int
    cost: float
    duration: float
    success: bool = True


class CostSummary(BaseModel):
    calls: int
    failures: int
    total_cost: float
    input_tokens: int
    output_tokens: int
    by_tier: Dict[str, int]


class CostMonitor:
    """Bounded history of calls; ``clock`` is injectable for tests."""

    def __init__(
        self, clock: Callable[[], float] = time.monotonic, limit: int = HISTORY_LIMIT
    ) -> None:
        self._clock = clock
        self._history: Deque[CallRecord] = deque(maxlen=limit)

    def now(self) -> float:
        return self._clock()

    @staticmethod
    def estimate(tier: ModelTier, input_tokens: int, output_tokens: int) -> float:
        input_rate, output_rate = RATES.get(tier, RATES["standard"])
        return input_tokens / 1_000_000 * input_rate + output_tokens / 1_000_000 * output_rate

    def record(
        self,
        tier: ModelTier,
        role: str,
        input_tokens: int,
        output_tokens: int,
        started_at: Optional[float] = None,
        success: bool = True,
    ) -> CallRecord:
        now = self._clock()
        entry = CallRecord(
            timestamp=now,
            tier=tier,
            role=role,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=self.estimate(tier, input_tokens, output_tokens) if success else 0.0,
            duration=now - started_at if started_at is not None else 0.0,
            success=success,
        )
        self._history.append(entry)
        logger.debug(
            f"LLM call tier={tier} role={role} in={input_tokens} out={output_tokens} "
            f"cost=${entry.cost:.4f} success={success}"
        )
        return entry

    @property
    def history(self) -> list[CallRecord]:
        return list(self._history)

    def summary(self) -> CostSummary:
        by_tier: Dict[str, int] = {}
        for entry in self._history:
            by_tier[entry.tier] = by_tier.get(entry.tier, 0) + 1
        return CostSummary(
            calls=len(self._history),
            failures=sum(1 for e in self._history if not e.success),
            total_cost=sum(e.cost for e in self._history),
            input_tokens=sum(e.input_tokens for e in self._history),
            output_tokens=sum(e.output_tokens for e in self._history),
            by_tier=by_tier,
        )
