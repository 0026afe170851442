"""
Metrics module for application monitoring.

This module provides Prometheus metrics collection and helper functions.
"""
from textshare.metrics.prometheus import (
    # API Metrics
    api_requests_total,
    api_request_duration_seconds,
    api_requests_in_progress,

    # Quota Metrics
    quota_decisions_total,
    quota_ledger_entries,
    quota_windows_reaped_total,

    # Resource Metrics
    resources_created_total,
    access_decisions_total,
    slug_allocation_attempts,
    slug_allocation_failures_total,

    # Lifecycle Metrics
    sweep_deleted_total,
    sweep_errors_total,
    sweep_duration_seconds,
    sweep_last_success_timestamp,

    # Payload Storage Metrics
    payload_operations_total,
    payload_bytes_stored_total,

    # System Metrics
    app_info,
    app_uptime_seconds,

    # Helper Functions
    record_api_request,
    record_quota_decision,
    update_quota_ledger_size,
    record_resource_created,
    record_access_decision,
    record_slug_allocation,
    record_slug_failure,
    record_sweep,
    record_payload_operation,
)

__all__ = [
    # API Metrics
    "api_requests_total",
    "api_request_duration_seconds",
    "api_requests_in_progress",

    # Quota Metrics
    "quota_decisions_total",
    "quota_ledger_entries",
    "quota_windows_reaped_total",

    # Resource Metrics
    "resources_created_total",
    "access_decisions_total",
    "slug_allocation_attempts",
    "slug_allocation_failures_total",

    # Lifecycle Metrics
    "sweep_deleted_total",
    "sweep_errors_total",
    "sweep_duration_seconds",
    "sweep_last_success_timestamp",

    # Payload Storage Metrics
    "payload_operations_total",
    "payload_bytes_stored_total",

    # System Metrics
    "app_info",
    "app_uptime_seconds",

    # Helper Functions
    "record_api_request",
    "record_quota_decision",
    "update_quota_ledger_size",
    "record_resource_created",
    "record_access_decision",
    "record_slug_allocation",
    "record_slug_failure",
    "record_sweep",
    "record_payload_operation",
]
