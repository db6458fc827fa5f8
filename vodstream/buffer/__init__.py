"""Buffer health monitoring."""

from .monitor import (
    BufferHealthMonitor,
    BufferHealthSample,
    EMPTY_SAMPLE,
    HEALTHY_LOOKAHEAD,
    STATUS_HEALTHY,
    STATUS_CAUTION,
    STATUS_CRITICAL,
    classify,
)

__all__ = [
    'BufferHealthMonitor',
    'BufferHealthSample',
    'EMPTY_SAMPLE',
    'HEALTHY_LOOKAHEAD',
    'STATUS_HEALTHY',
    'STATUS_CAUTION',
    'STATUS_CRITICAL',
    'classify',
]
