"""Default parameters and the session factory.

This module gathers the tunable constants of every component and provides
a convenience function that wires a PlaybackSessionController together with
its scheduler, monitor and collaborators.

The constants shared between components are:
- SEGMENT_DURATION: used by the prefetch scheduler to map time to segments
  and by simulated media to size the timeline
- INITIAL_LISTING_LIMIT: how many segments count as loaded after the summary
"""

import time
from datetime import datetime
from typing import Callable, Optional

import httpx

from .buffer import BufferHealthMonitor, HEALTHY_LOOKAHEAD
from .core.engine import AbstractMediaEngine
from .core.segment import SEGMENT_DURATION, default_segment_name
from .gateway import (
    AbstractCatalogGateway,
    AbstractProgressGateway,
    HttpCatalogGateway,
    HttpProgressGateway,
    DEFAULT_BASE_URL,
)
from .gateway.http import DEFAULT_TIMEOUT
from .prefetch import (
    AbstractSegmentFetcher,
    HttpSegmentFetcher,
    PrefetchScheduler,
    PRELOAD_BUFFER_SIZE,
    MIN_REQUEST_INTERVAL,
    INITIAL_LISTING_LIMIT,
)
from .progress import (
    COMPLETION_PERCENTAGE,
    RESUME_MIN_POSITION,
    RESUME_MAX_AGE,
    MAX_HISTORY_ENTRIES,
    WatchHistory,
)
from .progress.checkpoint import utcnow
from .session import (
    PlaybackSessionController,
    PLAYBACK_RATES,
    SAVE_INTERVAL,
    SEEK_STEP,
    VOLUME_STEP,
)


__all__ = [
    'SEGMENT_DURATION',
    'HEALTHY_LOOKAHEAD',
    'PRELOAD_BUFFER_SIZE',
    'MIN_REQUEST_INTERVAL',
    'INITIAL_LISTING_LIMIT',
    'SAVE_INTERVAL',
    'COMPLETION_PERCENTAGE',
    'RESUME_MIN_POSITION',
    'RESUME_MAX_AGE',
    'MAX_HISTORY_ENTRIES',
    'PLAYBACK_RATES',
    'SEEK_STEP',
    'VOLUME_STEP',
    'DEFAULT_BASE_URL',
    'create_session_with_default',
]


def create_session_with_default(
    engine: AbstractMediaEngine,
    series_id: str,
    episode_number: int,
    episode_id: Optional[str] = None,
    user_id: Optional[str] = None,
    history: Optional[WatchHistory] = None,
    # Collaborators (HTTP against base_url when not given)
    base_url: str = DEFAULT_BASE_URL,
    http_client: Optional[httpx.AsyncClient] = None,
    catalog: Optional[AbstractCatalogGateway] = None,
    progress: Optional[AbstractProgressGateway] = None,
    fetcher: Optional[AbstractSegmentFetcher] = None,
    # Prefetch parameters
    preload_buffer_size: int = PRELOAD_BUFFER_SIZE,
    min_request_interval: float = MIN_REQUEST_INTERVAL,
    segment_duration: float = SEGMENT_DURATION,
    naming_convention: Callable[[int], str] = default_segment_name,
    listing_limit: int = INITIAL_LISTING_LIMIT,
    # Monitor and persistence parameters
    healthy_lookahead: float = HEALTHY_LOOKAHEAD,
    save_interval: float = SAVE_INTERVAL,
    # Time sources
    clock: Callable[[], float] = time.monotonic,
    now: Callable[[], datetime] = utcnow,
) -> PlaybackSessionController:
    """Create a PlaybackSessionController with default parameters.

    Missing collaborators are created as HTTP clients of ``base_url`` sharing
    one ``httpx.AsyncClient``. A client created here is owned by the session
    and released by ``PlaybackSessionController.aclose``; a passed
    ``http_client`` stays the caller's. The scheduler and the controller share
    ``clock`` so both throttles run on the same time base (a simulated engine
    passes its virtual clock here).
    """
    owned_client = None
    if http_client is None and (catalog is None or progress is None or fetcher is None):
        http_client = owned_client = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
    if catalog is None:
        catalog = HttpCatalogGateway(base_url, client=http_client)
    if progress is None:
        progress = HttpProgressGateway(base_url, client=http_client)
    if fetcher is None:
        fetcher = HttpSegmentFetcher(base_url, client=http_client)

    scheduler = PrefetchScheduler(
        catalog=catalog,
        fetcher=fetcher,
        preload_buffer_size=preload_buffer_size,
        min_request_interval=min_request_interval,
        segment_duration=segment_duration,
        naming_convention=naming_convention,
        clock=clock,
    )

    return PlaybackSessionController(
        engine=engine,
        catalog=catalog,
        progress=progress,
        scheduler=scheduler,
        series_id=series_id,
        episode_number=episode_number,
        episode_id=episode_id,
        user_id=user_id,
        history=history,
        monitor=BufferHealthMonitor(healthy_lookahead=healthy_lookahead),
        save_interval=save_interval,
        listing_limit=listing_limit,
        clock=clock,
        now=now,
        http_client=owned_client,
    )
