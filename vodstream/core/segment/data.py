"""Segment descriptor data classes."""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np
from numpy.typing import NDArray


SEGMENT_DURATION = 6.0  # sec, every segment covers this much playback
VIDEO_STATUS_COMPLETED = 'completed'


def default_segment_name(index: int) -> str:
    """Name of the segment file at a 0-based index, e.g. ``segment_007.ts``."""
    return f"segment_{index:03d}.ts"


@dataclass(frozen=True)
class SegmentDescriptorSet:
    """Immutable description of how one video is cut into segments.

    Created once the transcode of a video is completed and never mutated
    afterwards. A playback session owns one of these until the episode changes.
    """
    video_id: str
    total_segments: int
    segment_duration_seconds: float = SEGMENT_DURATION
    naming_convention: Callable[[int], str] = default_segment_name
    initial_segment_names: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.total_segments < 0:
            raise ValueError(f"total_segments must be >= 0, got {self.total_segments}")
        if self.segment_duration_seconds <= 0:
            raise ValueError(
                f"segment_duration_seconds must be positive, got {self.segment_duration_seconds}"
            )

    def segment_name(self, index: int) -> str:
        if not 0 <= index < self.total_segments:
            raise IndexError(f"segment {index} out of range [0, {self.total_segments})")
        return self.naming_convention(index)

    def segment_names(self, start: int, end: int) -> List[str]:
        """Names of segments ``start`` (inclusive) to ``end`` (exclusive)."""
        return [self.segment_name(i) for i in range(start, end)]

    def segment_url(self, index: int, base_url: str) -> str:
        """Static URL the segment is served from, e.g. ``{base}/segments/{video}/segment_000.ts``."""
        return f"{base_url.rstrip('/')}/segments/{self.video_id}/{self.segment_name(index)}"

    def segment_index_at(self, time_seconds: float) -> int:
        """Index of the segment containing a playback position."""
        return int(max(time_seconds, 0.0) // self.segment_duration_seconds)


@dataclass(frozen=True)
class SegmentSummary:
    """What the catalog reports about a video's segments."""
    total_segments: int
    initial_segment_names: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class VideoInfo:
    """Catalog entry of the video attached to an episode."""
    video_id: str
    hls_manifest_url: str
    duration_seconds: Optional[float] = None
    status: str = VIDEO_STATUS_COMPLETED
    total_segments: Optional[int] = None
    title: str = ''

    @property
    def is_playable(self) -> bool:
        return self.status == VIDEO_STATUS_COMPLETED


@dataclass
class SegmentMedia:
    """Segment payload sizes of one rendition, used by simulated engines."""
    segment_sizes: NDArray[np.int64]  # shape: [total_segments]
    segment_duration_seconds: float = SEGMENT_DURATION

    @property
    def total_segments(self) -> int:
        return int(self.segment_sizes.shape[0])

    @property
    def duration(self) -> float:
        return self.total_segments * self.segment_duration_seconds

    def get_segment_size(self, index: int) -> int:
        return int(self.segment_sizes[index])
