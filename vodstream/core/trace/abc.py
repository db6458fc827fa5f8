"""Abstract network trace simulator interface."""

from dataclasses import dataclass
from abc import ABC, abstractmethod


@dataclass
class TraceProgress:
    """Current trace progress information for logging.

    Attributes:
        trace_index: Index of the current trace (0-based)
        all_trace_names: List of all trace file names
        trace_time: Position inside the current trace in seconds
    """
    trace_index: int
    all_trace_names: list[str]
    trace_time: float


class AbstractTraceSimulator(ABC):
    """Abstract base class defining the network side of a simulated media engine.

    Implementations walk a bandwidth trace and report how long transfers take.
    The trace position only moves forward, either by transferring bytes or by
    idling while the player has nothing to download.
    """

    # ==================== Methods for logging ====================

    @abstractmethod
    def get_trace_progress(self) -> TraceProgress:
        """Get current trace progress information for logging."""
        ...

    # ==================== Methods for reset ====================

    @abstractmethod
    def reset(self) -> None:
        """Rewind to the beginning of the first trace."""
        ...

    @abstractmethod
    def next_trace(self) -> None:
        """Move on to the next trace, wrapping around after the last one."""
        ...

    # ==================== Methods for runtime ====================

    @abstractmethod
    def download(self, size_bytes: int) -> float:
        """Simulate transferring a payload.

        Args:
            size_bytes: Payload size in bytes

        Returns:
            Transfer delay in seconds, including the link round trip
        """
        ...

    @abstractmethod
    def idle(self, seconds: float) -> None:
        """Let trace time pass without transferring anything.

        Args:
            seconds: Idle duration in seconds
        """
        ...
