"""Segment descriptors and segment size loading."""

from .data import (
    SEGMENT_DURATION,
    VIDEO_STATUS_COMPLETED,
    SegmentDescriptorSet,
    SegmentMedia,
    SegmentSummary,
    VideoInfo,
    default_segment_name,
)
from .loader import load_segment_sizes, constant_bitrate_segments

__all__ = [
    'SEGMENT_DURATION',
    'VIDEO_STATUS_COMPLETED',
    'SegmentDescriptorSet',
    'SegmentMedia',
    'SegmentSummary',
    'VideoInfo',
    'default_segment_name',
    'load_segment_sizes',
    'constant_bitrate_segments',
]
