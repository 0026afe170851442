"""
Prometheus metrics for application monitoring.

This module defines all Prometheus metrics used throughout the application:
- API request metrics (requests, duration, in-progress)
- Quota metrics (decisions per category, ledger size)
- Resource metrics (created, access decisions, slug allocation)
- Lifecycle metrics (sweep deletions, errors, duration)
- Payload storage metrics (operations, duration)
"""
from prometheus_client import Counter, Gauge, Histogram


# ============================================================================
# API Metrics
# ============================================================================

api_requests_total = Counter(
    "api_requests_total",
    "Total number of API requests",
    ["method", "endpoint", "status"],
)

api_request_duration_seconds = Histogram(
    "api_request_duration_seconds",
    "API request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

api_requests_in_progress = Gauge(
    "api_requests_in_progress",
    "Number of API requests currently being processed",
    ["method", "endpoint"],
)


# ============================================================================
# Quota Metrics
# ============================================================================

quota_decisions_total = Counter(
    "quota_decisions_total",
    "Quota ledger decisions",
    ["category", "decision"],  # decision: admitted, denied
)

quota_ledger_entries = Gauge(
    "quota_ledger_entries",
    "Number of live (client, category) windows in the quota ledger",
)

quota_windows_reaped_total = Counter(
    "quota_windows_reaped_total",
    "Number of elapsed quota windows removed by the reaper",
)


# ============================================================================
# Resource Metrics
# ============================================================================

resources_created_total = Counter(
    "resources_created_total",
    "Total number of resources created",
    ["kind"],
)

access_decisions_total = Counter(
    "access_decisions_total",
    "Access gate outcomes",
    ["kind", "outcome"],  # outcome: granted, not_found, expired, exhausted, invalid_password
)

slug_allocation_attempts = Histogram(
    "slug_allocation_attempts",
    "Candidates tried before a free random slug was found",
    ["kind"],
    buckets=[1, 2, 3, 4, 5, 6, 7, 8],
)

slug_allocation_failures_total = Counter(
    "slug_allocation_failures_total",
    "Slug allocations that failed",
    ["kind", "reason"],  # reason: taken, exhausted, collision
)


# ============================================================================
# Lifecycle Metrics
# ============================================================================

sweep_deleted_total = Counter(
    "sweep_deleted_total",
    "Resources deleted by the lifecycle sweeper",
    ["kind", "reason"],  # reason: expired, exhausted, retention
)

sweep_errors_total = Counter(
    "sweep_errors_total",
    "Errors collected during lifecycle sweeps",
    ["kind"],
)

sweep_duration_seconds = Histogram(
    "sweep_duration_seconds",
    "Duration of a full lifecycle sweep",
    buckets=[0.1, 0.5, 1, 2.5, 5, 10, 30, 60, 120, 300],
)

sweep_last_success_timestamp = Gauge(
    "sweep_last_success_timestamp",
    "Unix time of the last sweep that finished without errors",
)


# ============================================================================
# Payload Storage Metrics
# ============================================================================

payload_operations_total = Counter(
    "payload_operations_total",
    "Total number of payload storage operations",
    ["operation", "status"],  # operation: put, get, delete
)

payload_bytes_stored_total = Counter(
    "payload_bytes_stored_total",
    "Total bytes written to payload storage",
)


# ============================================================================
# System Metrics (Application Level)
# ============================================================================

app_info = Gauge(
    "app_info",
    "Application information",
    ["version", "environment"],
)

app_uptime_seconds = Gauge(
    "app_uptime_seconds",
    "Application uptime in seconds",
)


# ============================================================================
# Helper Functions
# ============================================================================

def record_api_request(method: str, endpoint: str, status_code: int, duration: float):
    """Record API request metrics."""
    api_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    api_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def record_quota_decision(category: str, admitted: bool):
    """Record a quota admit/deny decision."""
    decision = "admitted" if admitted else "denied"
    quota_decisions_total.labels(category=category, decision=decision).inc()


def update_quota_ledger_size(entries: int, reaped: int = 0):
    """Update ledger size after a reaper pass."""
    quota_ledger_entries.set(entries)
    if reaped:
        quota_windows_reaped_total.inc(reaped)


def record_resource_created(kind: str, count: int = 1):
    """Record resource creation metric."""
    resources_created_total.labels(kind=kind).inc(count)


def record_access_decision(kind: str, outcome: str):
    """Record an access gate outcome."""
    access_decisions_total.labels(kind=kind, outcome=outcome).inc()


def record_slug_allocation(kind: str, attempts: int):
    """Record how many candidates a random allocation needed."""
    slug_allocation_attempts.labels(kind=kind).observe(attempts)


def record_slug_failure(kind: str, reason: str):
    """Record a failed slug allocation."""
    slug_allocation_failures_total.labels(kind=kind, reason=reason).inc()


def record_sweep(report):
    """
    Record the metrics of a finished sweep.

    Args:
        report: SweepReport returned by LifecycleSweeper.sweep()
    """
    for result in report.results:
        for reason, count in (
            ("expired", result.expired_deleted),
            ("exhausted", result.exhausted_deleted),
            ("retention", result.retention_deleted),
        ):
            if count:
                sweep_deleted_total.labels(kind=result.kind, reason=reason).inc(count)
        if result.errors:
            sweep_errors_total.labels(kind=result.kind).inc(len(result.errors))
    sweep_duration_seconds.observe(report.duration_seconds)
    if not report.errors:
        sweep_last_success_timestamp.set_to_current_time()


def record_payload_operation(operation: str, success: bool, size_bytes: int = 0):
    """Record payload storage operation metrics."""
    status = "success" if success else "failed"
    payload_operations_total.labels(operation=operation, status=status).inc()
    if operation == "put" and success and size_bytes:
        payload_bytes_stored_total.inc(size_bytes)
