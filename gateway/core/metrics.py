"""
Prometheus metrics exposed at /metrics.
"""

from prometheus_client import Counter, Histogram

UPSTREAM_REQUESTS = Counter(
    "gateway_upstream_requests_total",
    "Requests forwarded to downstream services",
    ["service", "method", "status"],
)

UPSTREAM_LATENCY = Histogram(
    "gateway_upstream_latency_seconds",
    "Time spent waiting on downstream services",
    ["service"],
)

AUTH_REJECTIONS = Counter(
    "gateway_auth_rejections_total",
    "Private route requests rejected with 401",
    ["service", "reason"],
)

RATE_LIMITED = Counter(
    "gateway_rate_limited_total",
    "Requests rejected with 429",
)
