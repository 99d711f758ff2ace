"""Prometheus metrics for exports, row store health and deal quoting"""

from prometheus_client import Counter, Histogram

# Export metrics
export_counter = Counter(
    "backoffice_exports_total",
    "Report exports attempted",
    ["variant", "outcome"],  # remote | local | csv | pdf_table ; success | failure
)

export_latency_histogram = Histogram(
    "backoffice_export_latency_seconds",
    "Time to produce an export artifact",
    ["variant"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 180.0],
)

# Row store metrics
store_fetch_failures_counter = Counter(
    "backoffice_store_failures_total",
    "Failed row store calls",
    ["table", "operation"],
)

# Deal calculator
infeasible_payment_counter = Counter(
    "backoffice_infeasible_payment_total",
    "Deal quotes rejected because the payment never retires the loan",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_export(variant: str, success: bool, duration_seconds: float) -> None:
    """Count an export attempt and observe its latency"""
    export_counter.labels(variant=variant, outcome="success" if success else "failure").inc()
    export_latency_histogram.labels(variant=variant).observe(duration_seconds)
