"""
Prometheus metrics for the license service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# License metrics
licenses_issued_total = Counter(
    "licenses_issued_total",
    "Total licenses issued",
    ["license_type"],
)

license_lifecycle_actions_total = Counter(
    "license_lifecycle_actions_total",
    "Administrative lifecycle actions applied to licenses",
    ["action"],
)

license_validations_total = Counter(
    "license_validations_total",
    "License validations by outcome",
    ["outcome"],
)

# Activation metrics
activations_total = Counter(
    "license_activations_total",
    "Successful machine activations",
)

activation_rejections_total = Counter(
    "license_activation_rejections_total",
    "Rejected activation attempts",
    ["reason"],
)

deactivations_total = Counter(
    "license_deactivations_total",
    "Successful machine deactivations",
)

store_retries_total = Counter(
    "license_store_retries_total",
    "Retries after transient store failures",
    ["operation"],
)

invariant_violations_total = Counter(
    "license_invariant_violations_total",
    "Bookkeeping anomalies detected and clamped",
    ["kind"],
)

# Subscription metrics
subscription_actions_total = Counter(
    "subscription_actions_total",
    "Subscription renewals and cancellations",
    ["action"],
)

# Locked operation latency, retries included
locked_operation_duration_seconds = Histogram(
    "license_locked_operation_duration_seconds",
    "Duration of license mutations under the row lock in seconds",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)
