"""Trace-driven network simulator.

Time Unit Convention:
=====================
All values handled here are in SECONDS, bandwidth samples are in Mbps and
payload sizes in bytes. Trace files store timestamps in seconds as well.
"""

from .data import TraceData
from .abc import AbstractTraceSimulator, TraceProgress


B_IN_MB = 1000000.0
BITS_IN_BYTE = 8.0
PACKET_PAYLOAD_PORTION = 0.95
LINK_RTT = 0.08  # sec


class TraceSimulator(AbstractTraceSimulator):
    """Walks a bandwidth trace to turn payload sizes into transfer delays.

    Traces are looped: when the pointer runs off the end of a trace it
    rewinds to the first sample, so arbitrarily long sessions can be
    simulated over a short recording.
    """

    def __init__(
        self,
        trace_data: TraceData,
        packet_payload_portion: float = PACKET_PAYLOAD_PORTION,
        link_rtt: float = LINK_RTT,
    ):
        """Initialize the network simulator.

        Args:
            trace_data: Loaded network trace data
            packet_payload_portion: Portion of packet that is payload (default: 0.95)
            link_rtt: Link round-trip time in seconds (default: 0.08)
        """
        assert len(trace_data.all_cooked_time) == len(trace_data.all_cooked_bw)
        assert len(trace_data) > 0
        for name, bw in zip(trace_data.all_file_names, trace_data.all_cooked_bw):
            if max(bw[1:], default=0.0) <= 0:
                raise ValueError(f"Trace {name} never carries any bandwidth")

        self.trace_data = trace_data
        self.packet_payload_portion = packet_payload_portion
        self.link_rtt = link_rtt

        self.reset()

    # ==================== Methods for logging ====================

    def get_trace_progress(self) -> TraceProgress:
        return TraceProgress(
            trace_index=self.trace_idx,
            all_trace_names=list(self.trace_data.all_file_names),
            trace_time=self.last_time,
        )

    # ==================== Methods for reset ====================

    def reset(self) -> None:
        self.trace_idx = 0
        self._load_current_trace()

    def next_trace(self) -> None:
        self.trace_idx += 1
        if self.trace_idx >= len(self.trace_data):
            self.trace_idx = 0
        self._load_current_trace()

    def _load_current_trace(self) -> None:
        self.cooked_time, self.cooked_bw, _ = self.trace_data[self.trace_idx]
        # note: trace file starts with time 0
        self.ptr = 1
        self.last_time = self.cooked_time[self.ptr - 1]

    def _advance_ptr(self) -> None:
        self.last_time = self.cooked_time[self.ptr]
        self.ptr += 1
        if self.ptr >= len(self.cooked_bw):
            # loop back in the beginning
            self.ptr = 1
            self.last_time = self.cooked_time[0]

    # ==================== Methods for runtime ====================

    def download(self, size_bytes: int) -> float:
        delay = 0.0
        sent = 0.0

        while True:
            throughput = self.cooked_bw[self.ptr] * B_IN_MB / BITS_IN_BYTE
            duration = self.cooked_time[self.ptr] - self.last_time

            packet_payload = throughput * duration * self.packet_payload_portion

            if sent + packet_payload > size_bytes:
                fractional_time = (size_bytes - sent) / \
                    throughput / self.packet_payload_portion
                delay += fractional_time
                self.last_time += fractional_time
                break

            sent += packet_payload
            delay += duration
            self._advance_ptr()

        return delay + self.link_rtt

    def idle(self, seconds: float) -> None:
        remaining = seconds
        while remaining > 0:
            duration = self.cooked_time[self.ptr] - self.last_time
            if duration > remaining:
                self.last_time += remaining
                break
            remaining -= duration
            self._advance_ptr()
