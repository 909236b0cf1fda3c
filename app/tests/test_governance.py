import threading
from datetime import datetime, timedelta, timezone

import pytest

from app.errors import QuotaExceeded, RateLimitExceeded
from app.governance import (
    ABSENT,
    Active,
    AnalyticsAggregator,
    CostGovernor,
    Governance,
    RateLimiter,
    WindowStore,
    step_window,
)
from app.settings import Settings


# -------------------------
# WINDOW STATE MACHINE
# -------------------------
def test_absent_starts_a_window():
    state, decision = step_window(ABSENT, now=100.0, cap=3, window=60)
    assert state == Active(count=1, reset_at=160.0)
    assert decision.allowed and decision.remaining == 2


def test_active_below_cap_increments_without_moving_reset():
    state, decision = step_window(Active(2, 160.0), now=150.0, cap=3, window=60)
    assert state == Active(3, 160.0)
    assert decision.allowed


def test_active_at_cap_denies_with_retry_after():
    current = Active(3, 160.0)
    state, decision = step_window(current, now=150.5, cap=3, window=60)
    assert state is current
    assert not decision.allowed
    assert decision.retry_after == 10


def test_retry_after_is_at_least_one_second():
    _, decision = step_window(Active(3, 160.0), now=159.9, cap=3, window=60)
    assert decision.retry_after == 1


def test_reset_boundary_replaces_the_entry():
    state, decision = step_window(Active(3, 160.0), now=160.0, cap=3, window=60)
    assert state == Active(1, 220.0)
    assert decision.allowed


# -------------------------
# RATE LIMITER
# -------------------------
def test_general_limit_denies_eleventh_request(clock):
    limiter = RateLimiter("general", 10, 60, WindowStore(clock))

    for _ in range(10):
        assert limiter.check("1.2.3.4").allowed

    clock.advance(5)
    with pytest.raises(RateLimitExceeded) as exc:
        limiter.enforce("1.2.3.4")
    assert 0 < exc.value.retry_after <= 60
    assert exc.value.retry_after == 55
    assert exc.value.error == "Too many requests"

    clock.advance(55)
    decision = limiter.check("1.2.3.4")
    assert decision.allowed and decision.count == 1


def test_traffic_classes_and_clients_are_independent(clock):
    store = WindowStore(clock)
    general = RateLimiter("general", 1, 60, store)
    ai = RateLimiter("ai", 1, 3600, store)

    assert general.check("a").allowed
    assert ai.check("a").allowed
    assert general.check("b").allowed
    assert not general.check("a").allowed
    assert general.key("a") == "a:general"
    assert len(store) == 3


def test_ai_limit_message_mentions_minutes(clock):
    limiter = RateLimiter(
        "ai", 1, 3600, WindowStore(clock),
        error="AI rate limit exceeded",
        message="Try again in {retry_minutes} minutes ({max_requests}/hour).",
    )
    limiter.enforce("c")
    clock.advance(60)

    with pytest.raises(RateLimitExceeded) as exc:
        limiter.enforce("c")
    assert exc.value.error == "AI rate limit exceeded"
    assert exc.value.message == "Try again in 59 minutes (1/hour)."


def test_concurrent_hits_never_exceed_cap(clock):
    limiter = RateLimiter("general", 10, 60, WindowStore(clock))
    allowed = []
    barrier = threading.Barrier(50)

    def worker():
        barrier.wait()
        allowed.append(limiter.check("shared").allowed)

    threads = [threading.Thread(target=worker) for _ in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert allowed.count(True) == 10
    assert allowed.count(False) == 40


# -------------------------
# COST GOVERNOR
# -------------------------
def test_daily_quota_allows_hundredth_denies_hundred_first(clock):
    cost = CostGovernor(100, store=WindowStore(clock))

    for _ in range(99):
        cost.enforce()
    hundredth = cost.enforce()
    assert hundredth.allowed and hundredth.count == 100

    with pytest.raises(QuotaExceeded) as exc:
        cost.enforce()
    assert exc.value.error == "Daily AI limit reached"
    assert exc.value.retry_after == 24 * 60 * 60


def test_cost_warning_flag_is_informational(clock):
    cost = CostGovernor(100, store=WindowStore(clock))

    for _ in range(79):
        assert not cost.check().warning
    assert not cost.warning_active

    eightieth = cost.check()
    assert eightieth.allowed and eightieth.warning
    assert cost.warning_active
    assert cost.usage == 80


def test_quota_is_global_and_resets_after_a_day(clock):
    cost = CostGovernor(2, store=WindowStore(clock))
    cost.enforce()
    cost.enforce()
    with pytest.raises(QuotaExceeded):
        cost.enforce()

    clock.advance(24 * 60 * 60)
    assert cost.usage == 0
    assert cost.enforce().count == 1


def test_empty_injected_store_is_kept(clock):
    store = WindowStore(clock)
    assert len(store) == 0
    assert CostGovernor(2, store=store).store is store


def test_governance_runs_daily_quota_on_injected_clock(clock):
    settings = Settings()
    settings.DAILY_AI_LIMIT = 1
    gov = Governance.from_settings(settings, clock=clock)

    gov.cost.enforce()
    with pytest.raises(QuotaExceeded) as exc:
        gov.cost.enforce()
    assert exc.value.retry_after == 24 * 60 * 60

    clock.advance(24 * 60 * 60)
    assert gov.cost.usage == 0
    assert gov.cost.enforce().allowed


# -------------------------
# EVICTION
# -------------------------
def test_evict_removes_only_expired_entries(clock):
    store = WindowStore(clock)
    store.hit("old:general", 10, 60)
    clock.advance(30)
    store.hit("new:general", 10, 60)
    clock.advance(30)

    assert store.evict_expired() == 1
    assert store.get("old:general") is ABSENT
    assert store.get("new:general") == Active(1, clock.now + 30)
    assert len(store) == 1


def test_evict_skips_when_store_is_busy(clock):
    store = WindowStore(clock)
    store.hit("k", 1, 1)
    clock.advance(5)

    store._lock.acquire()
    try:
        assert store.evict_expired() is None
    finally:
        store._lock.release()
    assert store.evict_expired() == 1


# -------------------------
# ANALYTICS
# -------------------------
class FakeNow:
    def __init__(self, start):
        self.current = start

    def __call__(self):
        return self.current


@pytest.fixture
def today():
    return FakeNow(datetime(2024, 3, 10, 23, 59, 0, tzinfo=timezone.utc))


def test_request_counters_and_response_times(today):
    agg = AnalyticsAggregator(now=today)

    a = agg.log_request("1.1.1.1", "/analyze", "POST", use_ai=True)
    b = agg.log_request("2.2.2.2", "/flows", "POST")
    c = agg.log_request("1.1.1.1", "/analyze", "POST")
    agg.log_response(a, 200, 30.0)
    agg.log_response(b, 400, 10.0)
    agg.log_response(c, 429, 20.0)

    current = agg.snapshot().current
    assert current.date == "2024-03-10"
    assert current.total_requests == 3
    assert current.ai_requests == 1
    assert current.unique_clients == 2
    assert current.endpoints == {"/analyze": 2, "/flows": 1}
    assert current.errors == 2
    assert current.avg_response_time == 20
    assert current.error_rate == "66.67%"


def test_midnight_rollover_moves_today_into_history(today):
    agg = AnalyticsAggregator(now=today)
    log = agg.log_request("1.1.1.1", "/analyze", "POST", use_ai=True)
    agg.log_response(log, 200, 12.0)

    today.current += timedelta(minutes=2)
    snap = agg.snapshot()

    assert snap.current.date == "2024-03-11"
    assert snap.current.total_requests == 0
    assert [h.date for h in snap.historical] == ["2024-03-10"]
    assert snap.historical[0].ai_requests == 1
    assert snap.summary.total_requests_all_time == 1
    assert snap.summary.total_ai_requests_all_time == 1


def test_history_keeps_thirty_days(today):
    agg = AnalyticsAggregator(now=today)
    for _ in range(35):
        agg.log_request("c", "/health", "GET")
        today.current += timedelta(days=1)
        agg.check_rollover()

    historical = agg.snapshot().historical
    assert len(historical) == 30
    assert historical[0].date == "2024-03-15"


def test_log_buffer_is_bounded_and_recent_is_newest_first(today):
    agg = AnalyticsAggregator(max_logs=1000, now=today)
    for i in range(1005):
        agg.log_request("c", f"/flows/{i}", "GET")

    assert len(agg._logs) == 1000
    recent = agg.snapshot().recent
    assert len(recent) == 50
    assert recent[0].endpoint == "/flows/1004"
    assert recent[-1].endpoint == "/flows/955"
    assert agg._logs[0].endpoint == "/flows/5"


def test_top_endpoints_and_recent_errors(today):
    agg = AnalyticsAggregator(now=today)
    for path, status in [("/analyze", 200), ("/analyze", 429), ("/flows", 404), ("/health", 200), ("/analyze", 200)]:
        agg.log_response(agg.log_request("c", path, "GET"), status, 1.0)

    top = agg.top_endpoints(2)
    assert [(e.endpoint, e.count) for e in top] == [("/analyze", 3), ("/flows", 1)]

    errors = agg.recent_errors()
    assert [(e.endpoint, e.status) for e in errors] == [("/flows", 404), ("/analyze", 429)]


def test_response_after_midnight_is_booked_on_request_day():
    now = FakeNow(datetime(2024, 3, 10, 23, 59, 59, tzinfo=timezone.utc))
    agg = AnalyticsAggregator(now=now)
    log = agg.log_request("c", "/analyze", "POST")

    now.current += timedelta(seconds=2)
    agg.check_rollover()
    agg.log_response(log, 500, 40.0)

    snap = agg.snapshot()
    assert snap.current.date == "2024-03-11"
    assert snap.current.total_requests == 0
    assert snap.current.errors == 0
    assert snap.current.avg_response_time == 0
    assert snap.current.error_rate == "0%"

    closed = snap.historical[0]
    assert closed.date == "2024-03-10"
    assert closed.total_requests == 1
    assert closed.errors == 1
    assert closed.avg_response_time == 40
    assert snap.recent[0].status == 500
