"""Network trace data classes."""

from typing import List, Tuple
from dataclasses import dataclass


@dataclass
class TraceData:
    """Container for loaded bandwidth traces.

    Each trace is a pair of equally long columns: timestamps in seconds and
    the link bandwidth in Mbps observed at that timestamp.
    """
    all_cooked_time: List[List[float]]
    all_cooked_bw: List[List[float]]
    all_file_names: List[str]

    def __len__(self) -> int:
        return len(self.all_file_names)

    def __getitem__(self, idx: int) -> Tuple[List[float], List[float], str]:
        return (
            self.all_cooked_time[idx],
            self.all_cooked_bw[idx],
            self.all_file_names[idx]
        )


def constant_trace(bandwidth_mbps: float, length_seconds: int = 600) -> TraceData:
    """Build a single flat trace, one sample per second."""
    if bandwidth_mbps <= 0:
        raise ValueError(f"bandwidth must be positive, got {bandwidth_mbps}")
    cooked_time = [float(t) for t in range(length_seconds + 1)]
    cooked_bw = [float(bandwidth_mbps)] * len(cooked_time)
    return TraceData(
        all_cooked_time=[cooked_time],
        all_cooked_bw=[cooked_bw],
        all_file_names=[f"constant_{bandwidth_mbps:g}mbps"],
    )
