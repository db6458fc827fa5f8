"""Progressive segment prefetch scheduler.

Keeps a bounded window of segments ahead of the playhead warm in cache,
independently of what the media engine itself has buffered. Prefetching is
advisory: nothing here may fail or block the playback path.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set

import numpy as np

from ..core.segment import SegmentDescriptorSet, SEGMENT_DURATION, default_segment_name
from ..errors import VodStreamError
from ..gateway.abc import AbstractCatalogGateway
from .fetcher import AbstractSegmentFetcher


logger = logging.getLogger(__name__)

PRELOAD_BUFFER_SIZE = 3  # segments to keep warm ahead of the playhead
MIN_REQUEST_INTERVAL = 5.0  # sec between two prefetch dispatches
INITIAL_LISTING_LIMIT = 10  # segments the catalog lists up front


@dataclass
class PrefetchWindowState:
    """Bookkeeping of one scheduler. Only the scheduler mutates it.

    Attributes:
        loaded_segments: Segments warmed so far, counted from the first one
        requested_segments: Segments dispatched so far (never below loaded_segments)
        preload_buffer_size: Segments to keep warm ahead of the playhead
        last_load_timestamp: Clock reading of the last dispatch
        in_flight_segment_names: Names of segments currently being fetched
        throughput_segments_per_second: Estimate from the last completed batch
    """
    loaded_segments: int = 0
    requested_segments: int = 0
    preload_buffer_size: int = PRELOAD_BUFFER_SIZE
    last_load_timestamp: Optional[float] = None
    in_flight_segment_names: Set[str] = field(default_factory=set)
    throughput_segments_per_second: Optional[float] = None


class PrefetchScheduler:
    """Sliding-window prefetcher for one playback session."""

    def __init__(
        self,
        catalog: AbstractCatalogGateway,
        fetcher: AbstractSegmentFetcher,
        preload_buffer_size: int = PRELOAD_BUFFER_SIZE,
        min_request_interval: float = MIN_REQUEST_INTERVAL,
        segment_duration: float = SEGMENT_DURATION,
        naming_convention: Callable[[int], str] = default_segment_name,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the scheduler.

        Args:
            catalog: Source of the segment summary
            fetcher: Issues the warm-up request of each segment
            preload_buffer_size: Segments to keep warm ahead of the playhead
            min_request_interval: Seconds that must pass between two dispatches
            segment_duration: Playback seconds covered by each segment
            naming_convention: Maps a 0-based segment index to its file name
            clock: Monotonic time source for the dispatch throttle
        """
        if preload_buffer_size < 1:
            raise ValueError(f"preload_buffer_size must be >= 1, got {preload_buffer_size}")
        self.catalog = catalog
        self.fetcher = fetcher
        self.min_request_interval = min_request_interval
        self.segment_duration = segment_duration
        self.naming_convention = naming_convention
        self.clock = clock

        self.descriptors: Optional[SegmentDescriptorSet] = None
        self.state = PrefetchWindowState(preload_buffer_size=preload_buffer_size)
        self.throughput_history: List[float] = []
        self._initialized = False
        self._closed = False
        self._tasks: Set[asyncio.Task] = set()

    # ==================== Read-only views ====================

    @property
    def active(self) -> bool:
        return (
            not self._closed
            and self.descriptors is not None
            and self.descriptors.total_segments > 0
        )

    @property
    def loaded_segments(self) -> int:
        return self.state.loaded_segments

    @property
    def total_segments(self) -> int:
        return self.descriptors.total_segments if self.descriptors is not None else 0

    @property
    def loading_segment_names(self) -> List[str]:
        return sorted(self.state.in_flight_segment_names)

    @property
    def mean_throughput(self) -> Optional[float]:
        """Mean segments/second over all completed batches."""
        if not self.throughput_history:
            return None
        return float(np.mean(self.throughput_history))

    # ==================== Lifecycle ====================

    async def initialize(self, video_id: str, limit: int = INITIAL_LISTING_LIMIT) -> None:
        """Fetch the segment summary once; later calls are no-ops.

        A failed lookup leaves the scheduler inactive.
        """
        if self._initialized:
            return
        self._initialized = True

        try:
            summary = await self.catalog.get_segment_summary(video_id, limit)
        except VodStreamError as e:
            logger.warning(f"Segment summary for {video_id} unavailable, prefetch disabled: {e}")
            return
        if self._closed:
            return

        self.descriptors = SegmentDescriptorSet(
            video_id=video_id,
            total_segments=max(summary.total_segments, 0),
            segment_duration_seconds=self.segment_duration,
            naming_convention=self.naming_convention,
            initial_segment_names=list(summary.initial_segment_names),
        )
        initial = min(limit, self.descriptors.total_segments)
        self.state.loaded_segments = initial
        self.state.requested_segments = initial
        logger.debug(f"Prefetch for {video_id}: {initial}/{self.descriptors.total_segments} segments listed")

    async def wait_idle(self) -> None:
        """Wait until every dispatched batch finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Abandon in-flight batches; their completion is ignored."""
        self._closed = True
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self.state.in_flight_segment_names.clear()

    # ==================== Runtime ====================

    def on_playback_tick(self, current_time: float) -> bool:
        """Dispatch a prefetch batch if the window fell behind and the throttle allows.

        Safe to call on every timing tick. Must be called from a running event loop.

        Returns:
            Whether a batch was dispatched
        """
        if not self.active:
            return False

        current_index = self.descriptors.segment_index_at(current_time)
        target = min(current_index + self.state.preload_buffer_size,
                     self.descriptors.total_segments)
        start = max(self.state.requested_segments, self.state.loaded_segments)
        if target <= start:
            return False

        now = self.clock()
        last = self.state.last_load_timestamp
        if last is not None and now - last < self.min_request_interval:
            return False

        # claimed before the batch resolves so fast ticks cannot dispatch twice
        self.state.last_load_timestamp = now
        self.state.requested_segments = target

        task = asyncio.get_running_loop().create_task(self.prefetch_batch(start, target))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Prefetch dispatched for segments [{start}, {target})")
        return True

    async def prefetch_batch(self, start_index: int, end_index: int) -> None:
        """Warm segments ``start_index`` to ``end_index`` (exclusive) concurrently.

        Individual failures are logged and otherwise ignored; the window
        advances by the whole batch either way.
        """
        if not self.active:
            return
        names = self.descriptors.segment_names(start_index, end_index)
        self.state.in_flight_segment_names.update(names)
        began = time.perf_counter()
        try:
            await asyncio.gather(
                *(self._fetch_one(name) for name in names),
                return_exceptions=True,
            )
        finally:
            self.state.in_flight_segment_names.difference_update(names)
        if self._closed:
            return

        self.state.loaded_segments = min(
            self.state.loaded_segments + len(names),
            self.descriptors.total_segments,
        )
        self.state.requested_segments = max(self.state.requested_segments,
                                            self.state.loaded_segments)

        elapsed = time.perf_counter() - began
        if elapsed > 0:
            throughput = len(names) / elapsed
            self.state.throughput_segments_per_second = throughput
            self.throughput_history.append(throughput)

    async def _fetch_one(self, name: str) -> bool:
        try:
            await self.fetcher.fetch(self.descriptors.video_id, name)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Prefetch of {name} failed: {e}")
            return False
        return True
