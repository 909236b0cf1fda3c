# app/governance/analytics.py
from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set

from app.logging_config import log_event
from app.schemas import (
    AnalyticsSnapshot,
    AnalyticsTotals,
    CurrentDayStats,
    EndpointCount,
    HistoricalDayStats,
    RequestLogOut,
)


@dataclass
class RequestLog:
    timestamp: datetime
    client_id: str
    endpoint: str
    method: str
    use_ai: bool = False
    user_agent: Optional[str] = None
    # filled in on completion
    status: Optional[int] = None
    duration: Optional[float] = None

    def to_out(self) -> RequestLogOut:
        return RequestLogOut(
            timestamp=self.timestamp,
            client_id=self.client_id,
            endpoint=self.endpoint,
            method=self.method,
            use_ai=self.use_ai,
            user_agent=self.user_agent,
            status=self.status,
            duration=self.duration,
        )


@dataclass
class DailyStats:
    date: str
    total_requests: int = 0
    ai_requests: int = 0
    unique_clients: Set[str] = field(default_factory=set)
    endpoints: Dict[str, int] = field(default_factory=dict)
    errors: int = 0
    avg_response_time: float = 0.0
    total_response_time: float = 0.0

    def error_rate(self) -> str:
        if not self.total_requests:
            return "0%"
        return f"{self.errors / self.total_requests * 100:.2f}%"

    def to_history(self) -> HistoricalDayStats:
        return HistoricalDayStats(
            date=self.date,
            total_requests=self.total_requests,
            ai_requests=self.ai_requests,
            unique_clients=len(self.unique_clients),
            errors=self.errors,
            avg_response_time=round(self.avg_response_time),
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsAggregator:
    """In-memory usage statistics for the lifetime of the process.

    Holds one accumulator for today, a bounded history of closed days and
    a ring buffer of the most recent requests. Every public call first
    checks for a date change, so a stale "today" is never observed.
    """

    def __init__(
        self,
        max_logs: int = 1000,
        history_days: int = 30,
        now: Callable[[], datetime] = _utcnow,
    ):
        self._now = now
        self._lock = threading.Lock()
        self._logs: deque[RequestLog] = deque(maxlen=max_logs)
        self._history: deque[DailyStats] = deque(maxlen=history_days)
        self._current = DailyStats(date=self._today())

    def _today(self) -> str:
        return self._now().date().isoformat()

    def _rollover(self) -> None:
        # caller holds the lock
        today = self._today()
        if self._current.date == today:
            return
        self._history.append(self._current)
        self._current = DailyStats(date=today)
        log_event("NEW_DAY", f"New day started: {today}")

    def check_rollover(self) -> None:
        with self._lock:
            self._rollover()

    def log_request(
        self,
        client_id: str,
        endpoint: str,
        method: str,
        use_ai: bool = False,
        user_agent: Optional[str] = None,
    ) -> RequestLog:
        with self._lock:
            self._rollover()
            log = RequestLog(
                timestamp=self._now(),
                client_id=client_id,
                endpoint=endpoint,
                method=method,
                use_ai=use_ai,
                user_agent=user_agent,
            )
            self._logs.append(log)

            day = self._current
            day.total_requests += 1
            if use_ai:
                day.ai_requests += 1
            day.unique_clients.add(client_id)
            day.endpoints[endpoint] = day.endpoints.get(endpoint, 0) + 1

        ai_flag = "[AI]" if use_ai else ""
        log_event("REQUEST", f"{ai_flag}{method} {endpoint}", {"client_id": client_id})
        return log

    def _day_of(self, log: RequestLog) -> Optional[DailyStats]:
        # caller holds the lock
        date = log.timestamp.date().isoformat()
        if self._current.date == date:
            return self._current
        for day in reversed(self._history):
            if day.date == date:
                return day
        return None

    def log_response(self, log: RequestLog, status: int, duration: float) -> None:
        """Book the outcome on the day the request arrived, even after midnight."""
        with self._lock:
            log.status = status
            log.duration = duration

            day = self._day_of(log)
            if day is None:
                # the request's day already fell out of history
                return
            if status >= 400:
                day.errors += 1
            day.total_response_time += duration
            day.avg_response_time = day.total_response_time / max(day.total_requests, 1)

    def snapshot(self, recent_limit: int = 50) -> AnalyticsSnapshot:
        with self._lock:
            self._rollover()
            day = self._current
            history = list(self._history)
            recent = list(self._logs)[-recent_limit:][::-1] if recent_limit > 0 else []

            return AnalyticsSnapshot(
                current=CurrentDayStats(
                    date=day.date,
                    total_requests=day.total_requests,
                    ai_requests=day.ai_requests,
                    unique_clients=len(day.unique_clients),
                    endpoints=dict(day.endpoints),
                    errors=day.errors,
                    avg_response_time=round(day.avg_response_time),
                    error_rate=day.error_rate(),
                ),
                recent=[log.to_out() for log in recent],
                historical=[s.to_history() for s in history],
                summary=AnalyticsTotals(
                    total_requests_all_time=day.total_requests + sum(s.total_requests for s in history),
                    total_ai_requests_all_time=day.ai_requests + sum(s.ai_requests for s in history),
                ),
            )

    def top_endpoints(self, limit: int = 10) -> List[EndpointCount]:
        with self._lock:
            self._rollover()
            ranked = sorted(self._current.endpoints.items(), key=lambda kv: kv[1], reverse=True)
        return [EndpointCount(endpoint=e, count=c) for e, c in ranked[:limit]]

    def recent_errors(self, limit: int = 20) -> List[RequestLogOut]:
        with self._lock:
            errors = [log for log in self._logs if log.status is not None and log.status >= 400]
        return [log.to_out() for log in errors[-limit:][::-1]] if limit > 0 else []
