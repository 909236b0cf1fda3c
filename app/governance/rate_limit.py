# app/governance/rate_limit.py
from __future__ import annotations

import logging
import math
import time
from dataclasses import replace
from typing import Callable, Optional

from app.errors import QuotaExceeded, RateLimitExceeded
from app.logging_config import log_event

from .windows import ABSENT, WindowDecision, WindowStore


class RateLimiter:
    """Per-client fixed-window budget for one traffic class ("general", "ai")."""

    def __init__(
        self,
        traffic_class: str,
        max_requests: int,
        window_seconds: float,
        store: WindowStore,
        error: str = "Too many requests",
        message: str = "Rate limit exceeded. Try again in {retry_after} seconds.",
    ):
        self.traffic_class = traffic_class
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.store = store
        self.error = error
        self.message = message

    def key(self, client_id: str) -> str:
        return f"{client_id}:{self.traffic_class}"

    def check(self, client_id: str) -> WindowDecision:
        decision = self.store.hit(self.key(client_id), self.max_requests, self.window_seconds)
        if not decision.allowed:
            log_event(
                "RATE_LIMITED",
                f"{self.traffic_class} budget exhausted",
                {"client_id": client_id, "count": decision.count, "retry_after": decision.retry_after},
                level=logging.WARNING,
            )
        return decision

    def enforce(self, client_id: str) -> WindowDecision:
        decision = self.check(client_id)
        if not decision.allowed:
            raise RateLimitExceeded(
                decision.retry_after,
                self.message.format(
                    retry_after=decision.retry_after,
                    retry_minutes=math.ceil(decision.retry_after / 60),
                    max_requests=self.max_requests,
                ),
                error=self.error,
            )
        return decision


class CostGovernor:
    """Global daily quota for AI-enhanced requests.

    Same window semantics as RateLimiter, but one process-wide key.
    Crossing warning_ratio of the limit is logged and flagged on the
    decision; it never denies.
    """

    KEY = "global:ai:daily"

    def __init__(
        self,
        daily_limit: int,
        window_seconds: float = 24 * 60 * 60,
        warning_ratio: float = 0.8,
        store: Optional[WindowStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.daily_limit = daily_limit
        self.window_seconds = window_seconds
        self.warning_ratio = warning_ratio
        self.store = store if store is not None else WindowStore(clock)

    @property
    def warning_threshold(self) -> float:
        return self.daily_limit * self.warning_ratio

    @property
    def usage(self) -> int:
        state = self.store.get(self.KEY)
        return 0 if state is ABSENT else state.count

    @property
    def warning_active(self) -> bool:
        return self.usage >= self.warning_threshold

    def check(self) -> WindowDecision:
        decision = self.store.hit(self.KEY, self.daily_limit, self.window_seconds)
        decision = replace(decision, warning=decision.count >= self.warning_threshold)
        usage = {"count": decision.count, "limit": self.daily_limit}

        if not decision.allowed:
            log_event("COST_LIMIT", "Daily AI limit reached", usage, level=logging.ERROR)
        elif decision.warning:
            pct = int(self.warning_ratio * 100)
            log_event("COST_WARNING", f"{pct}% of daily AI limit used", usage, level=logging.WARNING)
        else:
            log_event("COST", "Daily AI usage", usage)
        return decision

    def enforce(self) -> WindowDecision:
        decision = self.check()
        if not decision.allowed:
            raise QuotaExceeded(
                decision.retry_after,
                "The daily AI analysis limit has been reached. Please try rule-based analysis "
                "(disable AI toggle) or try again tomorrow.",
            )
        return decision
