"""Prometheus metrics for the complaint photo attach step."""

from prometheus_client import Counter


IMAGE_ATTACH_ATTEMPTS = Counter(
    "complaint_image_attach_attempts_total",
    "Total number of complaint photo attach attempts (at creation and retries)",
)
IMAGE_ATTACH_SUCCESSES = Counter(
    "complaint_image_attach_success_total",
    "Total number of photos stored and linked to a complaint",
)
IMAGE_ATTACH_FAILURES = Counter(
    "complaint_image_attach_failure_total",
    "Total number of photo attach attempts that failed",
    ["reason"],
)
