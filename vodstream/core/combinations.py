"""Convenience functions for creating simulated engine configurations."""

from typing import Dict, Optional

from .engine import SimulatedMediaEngine, MAX_BUFFER
from .segment import SegmentMedia
from .trace import TraceSimulator, constant_trace, load_trace


def create_simulated_engine(
    media: Dict[str, SegmentMedia],
    trace_folder: Optional[str] = None,
    bandwidth_mbps: Optional[float] = None,
    max_buffer: float = MAX_BUFFER,
) -> SimulatedMediaEngine:
    """Create a SimulatedMediaEngine over recorded or constant bandwidth.

    Args:
        media: Loadable sources by URL
        trace_folder: Path to folder containing network trace files. Takes
                      precedence over ``bandwidth_mbps``.
        bandwidth_mbps: Flat link bandwidth used when no trace folder is given
        max_buffer: Seconds of lookahead after which downloading pauses

    Returns:
        Configured SimulatedMediaEngine instance
    """
    if trace_folder is not None:
        trace_data = load_trace(trace_folder)
    elif bandwidth_mbps is not None:
        trace_data = constant_trace(bandwidth_mbps)
    else:
        raise ValueError("Either trace_folder or bandwidth_mbps is required")

    return SimulatedMediaEngine(
        TraceSimulator(trace_data),
        media,
        max_buffer=max_buffer,
    )
