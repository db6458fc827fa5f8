"""Trace-driven simulated media engine.

Plays segmented media on a virtual clock. Segments are downloaded one at a
time over an :class:`AbstractTraceSimulator`, and playback only advances
through segments that already arrived, so a slow trace produces stalls the
same way a real player would.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from ...errors import MediaLoadError
from ..segment.data import SegmentMedia
from ..trace.abc import AbstractTraceSimulator
from .abc import AbstractMediaEngine, BufferedRanges


logger = logging.getLogger(__name__)

MAX_BUFFER = 60.0  # sec, stop downloading once this much is buffered ahead
EPSILON = 1e-9


@dataclass
class StepResult:
    """Result of advancing the engine clock by one step."""
    current_time: float         # Playhead position after the step, in seconds
    buffer_ahead: float         # Seconds playable from the playhead
    rebuffer: float             # Seconds spent stalled during the step
    downloaded_segments: int    # Segments completed during the step
    end_of_video: bool          # Whether playback reached the end


class SimulatedMediaEngine(AbstractMediaEngine):
    """Media engine whose clock is advanced explicitly through :meth:`step`.

    The `step` method orchestrates, in order:
        1. resolving a pending ``load`` (metadata or error event)
        2. downloading segments over the trace, or idling when the buffer is full
        3. advancing the playhead through buffered media
    """

    def __init__(
        self,
        trace_simulator: AbstractTraceSimulator,
        media: Dict[str, SegmentMedia],
        max_buffer: float = MAX_BUFFER,
    ):
        """Initialize the engine.

        Args:
            trace_simulator: Network simulator segments are downloaded over
            media: Loadable sources by URL
            max_buffer: Seconds of lookahead after which downloading pauses
        """
        super().__init__()
        self.trace_simulator = trace_simulator
        self.media = dict(media)
        self.max_buffer = max_buffer
        self.clock_time = 0.0
        self.total_rebuffer = 0.0
        self.fullscreen = False
        self._unload()

    def clock(self) -> float:
        """Virtual seconds elapsed since the engine was created."""
        return self.clock_time

    def _unload(self) -> None:
        self._source: Optional[str] = None
        self._media: Optional[SegmentMedia] = None
        self._pending_load: Optional[str] = None
        self._current_time = 0.0
        self._paused = True
        self._ended = False
        self._downloaded: Set[int] = set()
        self._downloading: Optional[int] = None
        self._download_remaining = 0.0

    # ==================== Transport ====================

    def load(self, url: str) -> None:
        self._unload()
        self._pending_load = url

    def play(self) -> None:
        if self._media is None or not self._paused:
            return
        if self._ended:
            self._current_time = 0.0
            self._ended = False
        self._paused = False
        self.emit('on_play')

    def pause(self) -> None:
        if self._paused:
            return
        self._paused = True
        self.emit('on_pause')

    def seek(self, time_seconds: float) -> None:
        if self._media is None:
            return
        self._current_time = min(max(time_seconds, 0.0), self._media.duration)
        self._ended = False
        self.emit('on_time_update', self._current_time, self._media.duration)

    def request_fullscreen(self) -> None:
        self.fullscreen = True

    # ==================== Clock and buffer ====================

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def duration(self) -> float:
        return self._media.duration if self._media is not None else 0.0

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def buffered(self) -> BufferedRanges:
        if self._media is None or not self._downloaded:
            return []
        seg_len = self._media.segment_duration_seconds
        ranges: List[List[float]] = []
        for index in sorted(self._downloaded):
            start = index * seg_len
            end = min((index + 1) * seg_len, self._media.duration)
            if ranges and abs(ranges[-1][1] - start) < EPSILON:
                ranges[-1][1] = end
            else:
                ranges.append([start, end])
        return [(start, end) for start, end in ranges]

    def buffer_ahead(self) -> float:
        """Seconds of contiguous buffered media from the playhead."""
        for start, end in self.buffered:
            if start - EPSILON <= self._current_time <= end + EPSILON:
                return max(end - self._current_time, 0.0)
        return 0.0

    # ==================== Simulation ====================

    def step(self, dt: float) -> StepResult:
        """Advance the virtual clock by ``dt`` seconds."""
        self.clock_time += dt

        # 1. Resolve a pending load
        if self._pending_load is not None:
            self._resolve_load()
            self.trace_simulator.idle(dt)
            return self._result(0.0, 0)

        if self._media is None:
            self.trace_simulator.idle(dt)
            return self._result(0.0, 0)

        # 2. Download segments, or idle once the buffer is full
        downloaded = self._download(dt)
        if downloaded:
            self.emit('on_progress')

        # 3. Advance the playhead through buffered media
        rebuffer = self._advance_playhead(dt)
        self.total_rebuffer += rebuffer
        return self._result(rebuffer, downloaded)

    def _result(self, rebuffer: float, downloaded: int) -> StepResult:
        return StepResult(
            current_time=self._current_time,
            buffer_ahead=self.buffer_ahead(),
            rebuffer=rebuffer,
            downloaded_segments=downloaded,
            end_of_video=self._ended,
        )

    def _resolve_load(self) -> None:
        url = self._pending_load
        self._pending_load = None
        media = self.media.get(url)
        if media is None or media.total_segments == 0:
            logger.warning(f"Simulated engine cannot load {url}")
            self.emit('on_error', MediaLoadError(f"Cannot load media from {url}"))
            return
        self._source = url
        self._media = media
        self.emit('on_loaded_metadata', media.duration)

    def _next_missing_segment(self) -> Optional[int]:
        index = int(self._current_time // self._media.segment_duration_seconds)
        while index < self._media.total_segments:
            if index not in self._downloaded:
                return index
            index += 1
        return None

    def _download(self, dt: float) -> int:
        remaining = dt
        completed = 0
        while remaining > EPSILON:
            if self._downloading is None:
                index = self._next_missing_segment()
                if index is None or self.buffer_ahead() >= self.max_buffer:
                    self.trace_simulator.idle(remaining)
                    break
                self._downloading = index
                self._download_remaining = self.trace_simulator.download(
                    self._media.get_segment_size(index))

            consumed = min(remaining, self._download_remaining)
            remaining -= consumed
            self._download_remaining -= consumed
            if self._download_remaining <= EPSILON:
                self._downloaded.add(self._downloading)
                self._downloading = None
                completed += 1
        return completed

    def _advance_playhead(self, dt: float) -> float:
        if self._paused or self._ended:
            return 0.0
        duration = self._media.duration
        wanted = dt * self.playback_rate
        reachable = self._current_time + self.buffer_ahead()
        new_time = min(self._current_time + wanted, reachable, duration)
        played = max(new_time - self._current_time, 0.0)
        self._current_time = new_time

        rebuffer = 0.0
        if new_time < duration - EPSILON and played < wanted:
            rebuffer = (wanted - played) / self.playback_rate

        self.emit('on_time_update', self._current_time, duration)
        if self._current_time >= duration - EPSILON:
            self._ended = True
            self._paused = True
            self.emit('on_ended')
        return rebuffer
