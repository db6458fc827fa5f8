"""Segment prefetching ahead of the playhead."""

from .fetcher import AbstractSegmentFetcher, HttpSegmentFetcher, InMemorySegmentFetcher
from .scheduler import (
    PrefetchScheduler,
    PrefetchWindowState,
    PRELOAD_BUFFER_SIZE,
    MIN_REQUEST_INTERVAL,
    INITIAL_LISTING_LIMIT,
)

__all__ = [
    'AbstractSegmentFetcher',
    'HttpSegmentFetcher',
    'InMemorySegmentFetcher',
    'PrefetchScheduler',
    'PrefetchWindowState',
    'PRELOAD_BUFFER_SIZE',
    'MIN_REQUEST_INTERVAL',
    'INITIAL_LISTING_LIMIT',
]
