"""
Prometheus metrics for the NHL tracker data service.

Metrics exposed:
- Snapshot update counters and duration histogram
- Per-item batch fetch outcomes (game logs, per-game odds)
- Odds API success/failure counters and quota gauges
- Cache read counters by serving source
"""
from prometheus_client import Counter, Gauge, Histogram

snapshot_updates_total = Counter(
    "nhl_snapshot_updates_total",
    "Snapshot update runs",
    ["status"]
)

snapshot_update_duration_seconds = Histogram(
    "nhl_snapshot_update_duration_seconds",
    "Wall-clock duration of a full snapshot update",
    buckets=(5, 15, 30, 60, 120, 180, 240, 300, 600)
)

batch_items_total = Counter(
    "nhl_batch_items_total",
    "Per-item fetch outcomes from the bounded batch fetcher",
    ["kind", "outcome"]
)

odds_api_requests_success_total = Counter(
    "odds_api_requests_success_total",
    "Total successful Odds API requests"
)

odds_api_requests_failure_total = Counter(
    "odds_api_requests_failure_total",
    "Total failed Odds API requests",
    ["error_type"]
)

odds_api_quota_remaining = Gauge(
    "odds_api_quota_remaining",
    "Remaining Odds API requests for current billing period"
)

odds_api_quota_used = Gauge(
    "odds_api_quota_used",
    "Used Odds API requests in current billing period"
)

cache_reads_total = Counter(
    "nhl_cache_reads_total",
    "Snapshot reads by serving source",
    ["source"]
)


def record_snapshot_update(status: str, duration_seconds: float | None = None):
    """Record one update run ("success" or "failure")."""
    snapshot_updates_total.labels(status=status).inc()
    if duration_seconds is not None:
        snapshot_update_duration_seconds.observe(duration_seconds)


def record_batch_outcomes(kind: str, success_count: int, error_count: int):
    """Record the outcome counts of one fetch_batched call."""
    if success_count:
        batch_items_total.labels(kind=kind, outcome="success").inc(success_count)
    if error_count:
        batch_items_total.labels(kind=kind, outcome="error").inc(error_count)


def update_odds_api_quota(remaining: int | None, used: int | None):
    """Update Odds API quota gauges from response headers."""
    if remaining is not None:
        odds_api_quota_remaining.set(remaining)
    if used is not None:
        odds_api_quota_used.set(used)


def record_odds_api_request_success():
    """Record a successful Odds API request."""
    odds_api_requests_success_total.inc()


def record_odds_api_request_failure(error_type: str = "unknown"):
    """Record a failed Odds API request."""
    odds_api_requests_failure_total.labels(error_type=error_type).inc()


def record_cache_read(source: str):
    """Record where a snapshot read was served from (memory, durable, fallback, miss)."""
    cache_reads_total.labels(source=source).inc()
