"""Custom Prometheus metrics for the generation layer.

These metrics are updated by PrometheusEventSink and should be scraped by
Prometheus. Alert rules should be configured for:
- generation_retry_exhausted_total (terminal failures surface to users)
- generation_retries_total (high retry rate indicates provider instability)
- generation_operation_duration_seconds (slow generations block campaigns)
"""

from prometheus_client import Counter, Histogram

# === Attempt Metrics ===

generation_attempts_total = Counter(
    "generation_attempts_total",
    "Total generation attempts by operation and outcome",
    ["operation", "outcome"],
)
"""
Attempt counter by operation label and outcome.

Labels:
- operation: Label passed to execute_with_retry (e.g. text-generation, image-generation)
- outcome: success (attempt succeeded), retry (failed, will retry), failure (terminal)
"""

# === Retry Metrics ===

generation_retries_total = Counter(
    "generation_retries_total",
    "Total scheduled retries by operation and error kind",
    ["operation", "error_kind"],
)
"""
Retries scheduled after a failed attempt.

Labels:
- operation: Operation label
- error_kind: network, timeout, rate_limit, provider_text_failure, provider_image_failure, unknown

Alert thresholds:
- WARN: retry rate > 10% of attempts
- CRITICAL: rate_limit retries sustained over 15 minutes (quota exhausted)
"""

generation_retry_exhausted_total = Counter(
    "generation_retry_exhausted_total",
    "Terminal generation failures by operation and error kind",
    ["operation", "error_kind"],
)
"""
Terminal failures (RetryExhausted raised).

Alert thresholds:
- WARN: any validation failure (request construction bug)
- CRITICAL: terminal failure rate > 5% of operations
"""

generation_retry_delay_seconds = Histogram(
    "generation_retry_delay_seconds",
    "Backoff delay applied before a retry, in seconds",
    ["operation"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 15.0, 30.0, 60.0, 120.0],
)

# === Operation Performance ===

generation_operation_duration_seconds = Histogram(
    "generation_operation_duration_seconds",
    "Wall time of execute_with_retry including retries and backoff",
    ["operation", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
)
"""
End-to-end duration histogram.

Labels:
- operation: Operation label
- success: true (returned a result), false (raised RetryExhausted)

Buckets cover single fast text calls up to image calls with several backoffs.
"""
