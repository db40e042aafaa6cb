"""
Prometheus metrics for publish runs.

Metrics Provided:
    - gcs_publish_upload_requests_total: Counter of uploads by status
    - gcs_publish_upload_bytes_total: Counter of bytes handed to GCS
    - gcs_publish_upload_duration_seconds: Histogram of per-file upload time
    - gcs_publish_gcs_api_errors_total: Counter of GCS errors by type

Usage:
    from gcs_publish.utils.metrics import get_metrics

    metrics = get_metrics()
    with metrics.track_upload():
        await sink.write_buffer(data)
    metrics.record_upload_success(bytes_uploaded=len(data), bucket="site-assets")

    # Expose for scraping (returns immediately, serves from a daemon thread):
    start_metrics_server(port=9090)
"""

import os
from contextlib import nullcontext
from typing import ContextManager, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, start_http_server

from gcs_publish.utils.logging import get_logger

logger = get_logger(__name__)


class PublishMetrics:
    """
    Prometheus collectors for the publisher.

    When disabled, every recording method is a no-op so callers never need
    to check ``enabled`` themselves.

    Example:
        >>> metrics = PublishMetrics(registry=CollectorRegistry())
        >>> metrics.record_upload_success(bytes_uploaded=1024, bucket="assets")
    """

    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None) -> None:
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY

        if not self.enabled:
            logger.info("Metrics collection disabled")
            return

        self.upload_requests = Counter(
            name="gcs_publish_upload_requests_total",
            documentation="Total number of file uploads",
            labelnames=["status", "bucket"],  # status: success/failure
            registry=self.registry,
        )

        self.upload_bytes = Counter(
            name="gcs_publish_upload_bytes_total",
            documentation="Total bytes uploaded to GCS",
            registry=self.registry,
        )

        self.upload_duration = Histogram(
            name="gcs_publish_upload_duration_seconds",
            documentation="Time spent uploading a single file",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=self.registry,
        )

        self.gcs_api_errors = Counter(
            name="gcs_publish_gcs_api_errors_total",
            documentation="Total GCS API errors",
            labelnames=["error_type"],
            registry=self.registry,
        )

    def track_upload(self) -> ContextManager:
        """Context manager timing one upload."""
        if not self.enabled:
            return nullcontext()
        return self.upload_duration.time()

    def record_upload_success(self, bytes_uploaded: int, bucket: str = "unknown") -> None:
        if not self.enabled:
            return
        self.upload_requests.labels(status="success", bucket=bucket).inc()
        if bytes_uploaded > 0:
            self.upload_bytes.inc(bytes_uploaded)

    def record_upload_failure(self, bucket: str = "unknown") -> None:
        if not self.enabled:
            return
        self.upload_requests.labels(status="failure", bucket=bucket).inc()

    def record_gcs_error(self, error_type: str) -> None:
        """
        Record a GCS API error.

        Args:
            error_type: Exception class name, e.g. Forbidden, NotFound, Timeout
        """
        if not self.enabled:
            return
        self.gcs_api_errors.labels(error_type=error_type).inc()


_metrics_instance: Optional[PublishMetrics] = None


def get_metrics() -> PublishMetrics:
    """
    Get the process-wide metrics instance.

    Honors ``METRICS_ENABLED`` (default "true") on first call.
    """
    global _metrics_instance

    if _metrics_instance is None:
        enabled = os.getenv("METRICS_ENABLED", "true").lower() == "true"
        _metrics_instance = PublishMetrics(enabled=enabled)

    return _metrics_instance


def start_metrics_server(port: int = 9090, addr: str = "0.0.0.0") -> None:
    """
    Serve /metrics for Prometheus from a background thread.

    Args:
        port: Port to listen on (default: 9090)
        addr: Address to bind to (default: all interfaces)
    """
    start_http_server(port=port, addr=addr)
    logger.info(f"Metrics server running at http://{addr}:{port}/metrics")
