# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Prometheus metrics for the incident dashboard."""
from prometheus_client import Counter, Gauge, Histogram

# ── HTTP (recorded by MetricsMiddleware) ──
HTTP_LABELS = ["method", "endpoint", "status"]

REQUEST_COUNT = Counter("http_requests_total", "Dashboard API requests", HTTP_LABELS)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Dashboard API latency", ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)
HTTP_ERRORS = Counter("http_errors_total", "Dashboard API responses with status >= 400", HTTP_LABELS)

# ── Business Metrics (updated by the service layer only) ──
INCIDENTS_TOTAL = Gauge("incidents_total", "Incidents currently in each status", ["status"])
INCIDENTS_INGESTED = Counter(
    "incidents_ingested_total", "Webhook ingestions by outcome", ["action"]
)
STATUS_CHANGES = Counter(
    "incident_status_changes_total", "Status transitions", ["from_status", "to_status"]
)
WEBHOOK_DELIVERIES = Counter(
    "webhook_deliveries_total", "Outbound webhook attempts", ["target", "outcome"]
)
FEED_CONNECTIONS = Gauge(
    "change_feed_connections", "Open change-feed WebSocket connections"
)
