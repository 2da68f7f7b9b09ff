"""
Prometheus metrics module for fitsched.

Service operation timings come from the @measure_operation decorator; the
recommendation and geocoding layers record their own domain counters.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "fitsched_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

service_operations_total = Counter(
    "fitsched_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "fitsched_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

recommendation_cache_total = Counter(
    "fitsched_recommendation_cache_total",
    "Recommendation cache lookups by outcome",
    ["outcome"],  # hit | miss | expired | invalidated
    registry=REGISTRY,
)

geocoding_requests_total = Counter(
    "fitsched_geocoding_requests_total",
    "Geocoding provider requests by outcome",
    ["provider", "outcome"],  # ok | empty | error
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "fitsched_booking_conflicts_total",
    "Rejected window placements by conflicting participant class",
    ["participant"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'cancel_training')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_recommendation_cache(outcome: str) -> None:
        recommendation_cache_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_geocoding_request(provider: str, outcome: str) -> None:
        geocoding_requests_total.labels(provider=provider, outcome=outcome).inc()

    @staticmethod
    def record_booking_conflict(participant: str) -> None:
        booking_conflicts_total.labels(participant=participant).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
