"""Prometheus metric inventory.

Every metric the service and the playback core record is declared here;
owners import the one they need and increment it at the point of action.
Counters only go up, so tests assert on deltas.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP (populated by MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Progress upserts are in-memory dict writes; anything past 250ms is
    # contention or a slow cache backend.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Course snapshot cache lookups by result",
    ["operation"],  # "hit" or "miss"
)

# ---------------------------------------------------------------------------
# Playback core
# ---------------------------------------------------------------------------

PROGRESS_WRITES = Counter(
    "playback_progress_writes_total",
    "Resume-position writes attempted by the progress persister",
    ["reason", "outcome"],  # reason: interval|pause|hidden|unload|...; outcome: ok|failed
)

PROGRESS_WRITES_SKIPPED = Counter(
    "playback_progress_writes_skipped_total",
    "Resume-position writes refused because the reading was zero or non-finite",
)

TOGGLE_OUTCOMES = Counter(
    "playback_toggle_outcomes_total",
    "Optimistic toggle resolutions",
    ["kind", "outcome"],  # kind: completion|bookmark|chapter; outcome: ok|rolled_back|stale
)

EVENTS_PUBLISHED = Counter(
    "playback_events_published_total",
    "Cross-panel events published on the event bus",
    ["event"],
)
