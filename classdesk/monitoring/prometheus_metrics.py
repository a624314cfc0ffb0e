"""
Prometheus metrics module for classdesk.

Service timings are fed by the ``@measure_operation`` decorator; domain
counters record booking conflicts, enrollment outcomes and report runs.
All series live in a dedicated registry exposed at ``/metrics``.
"""

from typing import Optional, cast

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

# Custom registry so repeated app construction in tests never re-registers collectors
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "classdesk_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

service_operations_total = Counter(
    "classdesk_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "classdesk_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

schedule_conflicts_total = Counter(
    "classdesk_schedule_conflicts_total",
    "Session bookings rejected because of an overlapping session",
    ["source"],  # check | constraint
    registry=REGISTRY,
)

enrollment_outcomes_total = Counter(
    "classdesk_enrollment_outcomes_total",
    "Enrollment decisions by outcome",
    ["outcome"],  # accepted | already_enrolled | capacity_exceeded | not_found
    registry=REGISTRY,
)

reports_generated_total = Counter(
    "classdesk_reports_generated_total",
    "Reports assembled, by report type and result",
    ["report", "status"],
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
            service: Service name (e.g., 'SchedulingService')
            operation: Operation/method name (e.g., 'schedule_session')
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
    def inc_schedule_conflict(source: str = "check") -> None:
        schedule_conflicts_total.labels(source=source).inc()

    @staticmethod
    def inc_enrollment_outcome(outcome: str, amount: int = 1) -> None:
        if amount > 0:
            enrollment_outcomes_total.labels(outcome=outcome).inc(amount)

    @staticmethod
    def inc_report(report: str, status: str = "success") -> None:
        reports_generated_total.labels(report=report, status=status).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()
