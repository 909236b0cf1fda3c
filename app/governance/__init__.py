# app/governance/__init__.py
from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from fastapi import Request

from app.logging_config import log_event

from .analytics import AnalyticsAggregator, DailyStats, RequestLog
from .rate_limit import CostGovernor, RateLimiter
from .windows import ABSENT, Absent, Active, WindowDecision, WindowStore, step_window


def get_client_id(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or "unknown"
    return request.client.host if request.client else "unknown"


@dataclass
class Governance:
    """
    Every piece of shared mutable request-governance state, created once
    per application and never persisted.
    """

    windows: WindowStore
    general: RateLimiter
    ai: RateLimiter
    cost: CostGovernor
    analytics: AnalyticsAggregator

    @classmethod
    def from_settings(
        cls,
        settings,
        clock: Callable[[], float] = time.time,
        now: Optional[Callable[[], datetime]] = None,
    ) -> "Governance":
        windows = WindowStore(clock)
        analytics_kwargs = {"now": now} if now else {}
        return cls(
            windows=windows,
            general=RateLimiter(
                "general",
                settings.RATE_LIMIT_MAX_REQUESTS,
                settings.RATE_LIMIT_WINDOW_SECONDS,
                windows,
            ),
            ai=RateLimiter(
                "ai",
                settings.AI_RATE_LIMIT_MAX_REQUESTS,
                settings.AI_RATE_LIMIT_WINDOW_SECONDS,
                windows,
                error="AI rate limit exceeded",
                message=(
                    "Too many AI requests. You can make {max_requests} AI-enhanced analyses per hour. "
                    "Try again in {retry_minutes} minutes, or use rule-based analysis (disable AI toggle)."
                ),
            ),
            cost=CostGovernor(
                settings.DAILY_AI_LIMIT,
                window_seconds=settings.DAILY_WINDOW_SECONDS,
                warning_ratio=settings.COST_WARNING_RATIO,
                store=WindowStore(clock),
            ),
            analytics=AnalyticsAggregator(
                max_logs=settings.MAX_LOGS,
                history_days=settings.HISTORY_DAYS,
                **analytics_kwargs,
            ),
        )

    def enforce_ai_budget(self, client_id: str) -> WindowDecision:
        """Per-client AI budget first, then the global daily quota."""
        self.ai.enforce(client_id)
        return self.cost.enforce()

    def evict_expired(self) -> dict:
        swept = {
            "rate_limits": self.windows.evict_expired(),
            "cost": self.cost.store.evict_expired(),
        }
        self.analytics.check_rollover()
        log_event("EVICT", "Expired window entries swept", swept)
        return swept


__all__ = [
    "ABSENT",
    "Absent",
    "Active",
    "AnalyticsAggregator",
    "CostGovernor",
    "DailyStats",
    "Governance",
    "RateLimiter",
    "RequestLog",
    "WindowDecision",
    "WindowStore",
    "get_client_id",
    "step_window",
]
