"""Segment size data loader."""

from typing import Optional

import numpy as np

from .data import SegmentMedia, SEGMENT_DURATION


def load_segment_sizes(
    segment_size_file: str,
    segment_duration_seconds: float = SEGMENT_DURATION,
    max_segments: Optional[int] = None,
) -> SegmentMedia:
    """
    Load segment payload sizes of one rendition.

    The file contains one segment size per line (in bytes); anything after
    the first column is ignored.

    Args:
        segment_size_file: Path of the size file
        segment_duration_seconds: Playback duration covered by each segment
        max_segments: Maximum number of segments to load. If specified,
                      truncates the loaded data to this limit.

    Returns:
        SegmentMedia holding the sizes
    """
    sizes = []
    with open(segment_size_file, 'r') as f:
        for line in f:
            parse = line.split()
            if parse:
                sizes.append(int(parse[0]))

    if max_segments is not None:
        sizes = sizes[:max_segments]

    return SegmentMedia(
        segment_sizes=np.array(sizes, dtype=np.int64),
        segment_duration_seconds=segment_duration_seconds,
    )


def constant_bitrate_segments(
    total_segments: int,
    bitrate_kbps: float,
    segment_duration_seconds: float = SEGMENT_DURATION,
) -> SegmentMedia:
    """Segment sizes of a constant-bitrate rendition."""
    size = int(bitrate_kbps * 1000.0 / 8.0 * segment_duration_seconds)
    return SegmentMedia(
        segment_sizes=np.full(total_segments, size, dtype=np.int64),
        segment_duration_seconds=segment_duration_seconds,
    )
