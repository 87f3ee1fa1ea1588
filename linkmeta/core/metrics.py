from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# ---------------------------------------------------------------------------
# Unfurl request outcomes
# ---------------------------------------------------------------------------
unfurl_requests_total = Counter(
    "unfurl_requests_total",
    "Total unfurl requests by outcome (success or error kind)",
    ["outcome"],
)

# ---------------------------------------------------------------------------
# Upstream fetches
# ---------------------------------------------------------------------------
upstream_fetch_duration_seconds = Histogram(
    "upstream_fetch_duration_seconds",
    "Duration of the primary page fetch in seconds",
    buckets=[0.1, 0.25, 0.5, 1, 2, 4, 8, 15],
)
manifest_fetch_total = Counter(
    "manifest_fetch_total",
    "Web-app manifest fetches by result",
    ["status"],
)


def get_metrics() -> bytes:
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
