"""
Storage and lifecycle module.

- Expiry policy: requested lifetime to clamped expiry timestamp
- Payload store: file bytes in MinIO
- Lifecycle sweeper: deletion of expired, exhausted and idle resources
"""

from .lifecycle import ExpiryPolicy, RetentionPolicy, parse_duration
from .payloads import PayloadStore, get_minio_client, object_key
from .cleanup import LifecycleSweeper, RetentionRule, SweepResult, SweepReport

__all__ = [
    # Expiry
    'ExpiryPolicy',
    'RetentionPolicy',
    'parse_duration',

    # Payloads
    'PayloadStore',
    'get_minio_client',
    'object_key',

    # Sweeping
    'LifecycleSweeper',
    'RetentionRule',
    'SweepResult',
    'SweepReport',
]
