"""Playback session controller.

One controller is bound to one (series, episode, video) for the lifetime of a
player session. It owns the transport state, reacts to media engine events,
feeds the buffer monitor and the prefetch scheduler on every tick, throttles
watch-progress checkpoints and runs the resume-prompt protocol.

All work happens on the event loop the engine emits on. Network calls are
fire-and-forget tasks whose failures are logged, never raised into the
engine's event handlers.
"""

import asyncio
import logging
import math
import time
from datetime import datetime
from typing import Callable, List, Optional, Set

import httpx

from ..buffer import BufferHealthMonitor, BufferHealthSample, EMPTY_SAMPLE
from ..core.engine import AbstractMediaEngine, MediaEngineListener
from ..core.segment import VideoInfo
from ..errors import VideoNotFoundError, VodStreamError
from ..gateway.abc import AbstractCatalogGateway, AbstractProgressGateway
from ..prefetch import PrefetchScheduler, INITIAL_LISTING_LIMIT
from ..progress import (
    NO_PROMPT,
    ResumeDecision,
    WatchCheckpoint,
    WatchHistory,
    decide_resume,
)
from ..progress.checkpoint import utcnow
from .state import (
    PlaybackSnapshot,
    PlaybackState,
    SessionListener,
    SEEKABLE_STATES,
)


logger = logging.getLogger(__name__)

SAVE_INTERVAL = 10.0  # sec between two checkpoint saves
MIN_SAVE_DURATION = 1.0  # sec, shorter durations mean metadata is not loaded yet
LOCAL_PROGRESS_EVERY = 5  # whole seconds between local history updates
SEEK_STEP = 10.0  # sec
VOLUME_STEP = 0.1
PLAYBACK_RATES = (0.5, 0.75, 1.0, 1.25, 1.5, 2.0)


class PlaybackSessionController(MediaEngineListener):
    """Stateful core of one playback session."""

    def __init__(
        self,
        engine: AbstractMediaEngine,
        catalog: AbstractCatalogGateway,
        progress: AbstractProgressGateway,
        scheduler: PrefetchScheduler,
        series_id: str,
        episode_number: int,
        episode_id: Optional[str] = None,
        user_id: Optional[str] = None,
        history: Optional[WatchHistory] = None,
        monitor: Optional[BufferHealthMonitor] = None,
        save_interval: float = SAVE_INTERVAL,
        listing_limit: int = INITIAL_LISTING_LIMIT,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utcnow,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the controller.

        Args:
            engine: Media backend to drive
            catalog: Video and segment lookups
            progress: System of record for checkpoints
            scheduler: Prefetch scheduler owned by this session
            series_id: Series being watched
            episode_number: Episode number used for the catalog lookup
            episode_id: Episode key of the local watch history (default: episode number)
            user_id: Authenticated user, or None when logged out
            history: Local watch history of the user
            monitor: Buffer health sampler (default: 30 s lookahead)
            save_interval: Seconds between two throttled checkpoint saves
            listing_limit: Segments the catalog lists when prefetch initializes
            clock: Monotonic time source for the save throttle
            now: Wall clock used for resume-age decisions
            http_client: HTTP client owned by this session, released by aclose
        """
        self.engine = engine
        self.catalog = catalog
        self.progress = progress
        self.scheduler = scheduler
        self.series_id = series_id
        self.episode_number = episode_number
        self.episode_id = episode_id if episode_id is not None else str(episode_number)
        self.user_id = user_id
        self.history = history
        self.monitor = monitor if monitor is not None else BufferHealthMonitor()
        self.save_interval = save_interval
        self.listing_limit = listing_limit
        self.clock = clock
        self.now = now
        self.http_client = http_client

        self.state = PlaybackState.IDLE
        self.video: Optional[VideoInfo] = None
        self.buffer_health: BufferHealthSample = EMPTY_SAMPLE
        self.resume_decision: ResumeDecision = NO_PROMPT
        self.load_error: Optional[Exception] = None

        self._resume_pending: Optional[WatchCheckpoint] = None
        self._source_url: Optional[str] = None
        self._resume_time = 0.0
        self._metadata_ready = False
        self._duration = 0.0
        self._last_save: Optional[float] = None
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[SessionListener] = []
        self._subscribed = False
        self._closed = False

    # ==================== Listeners ====================

    def add_listener(self, listener: SessionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: str, *args) -> None:
        for listener in list(self._listeners):
            getattr(listener, event)(*args)

    def _set_state(self, new: PlaybackState) -> None:
        old = self.state
        if old is new:
            return
        self.state = new
        logger.info(f"Session {self.series_id}/{self.episode_id}: {old.value} -> {new.value}")
        self._notify('on_state_change', old, new)

    # ==================== Lifecycle ====================

    @property
    def resume_prompt_pending(self) -> bool:
        return self._resume_pending is not None

    @property
    def duration(self) -> float:
        return self._duration

    async def open(self) -> PlaybackState:
        """Start the session: look up the video, prime prefetch, decide on resume, load."""
        if self._closed:
            raise VodStreamError("Session is closed")
        self._subscribe()
        self._set_state(PlaybackState.LOADING)

        try:
            video = await self.catalog.get_video_for_episode(self.series_id, self.episode_number)
        except VideoNotFoundError as e:
            logger.info(str(e))
            self._set_state(PlaybackState.UNAVAILABLE)
            return self.state
        except VodStreamError as e:
            logger.warning(f"Video lookup for {self.series_id}/{self.episode_number} failed: {e}")
            self.load_error = e
            self._set_state(PlaybackState.ERROR)
            return self.state
        if self._closed:
            return self.state
        self.video = video

        await self.scheduler.initialize(video.video_id, self.listing_limit)

        self._resume_time = 0.0
        self.resume_decision = await self._decide_resume()
        if self._closed:
            return self.state
        if self.resume_decision.should_prompt:
            self._resume_pending = self.resume_decision.checkpoint
            # listeners may answer right away through resolve_resume
            self._notify('on_resume_prompt', self.resume_decision.checkpoint)

        self.load_source(video.hls_manifest_url, self._resume_time)
        return self.state

    async def _decide_resume(self) -> ResumeDecision:
        if self.user_id is None:
            return NO_PROMPT
        checkpoint = None
        if self.history is not None:
            checkpoint = self.history.get_watch_progress(self.series_id, self.episode_id)
        if checkpoint is None and self.video is not None:
            try:
                checkpoint = await self.progress.get_checkpoint(self.user_id, self.video.video_id)
            except VodStreamError as e:
                logger.warning(f"Last checkpoint unavailable, starting without resume: {e}")
                checkpoint = None
        return decide_resume(checkpoint, now=self.now())

    def load_source(self, url: str, resume_time: float = 0.0) -> None:
        """Point the engine at a source; ``resume_time`` applies once metadata is in,
        unless a resume prompt is still unanswered."""
        if self._closed:
            raise VodStreamError("Session is closed")
        self._subscribe()
        self._source_url = url
        self._resume_time = max(resume_time, 0.0)
        self._metadata_ready = False
        self._duration = 0.0
        self.load_error = None
        self._set_state(PlaybackState.LOADING)
        self.engine.load(url)

    async def retry(self) -> PlaybackState:
        """Start over after an error, reusing nothing from the failed attempt."""
        if self.state is not PlaybackState.ERROR:
            return self.state
        if self.video is None:
            return await self.open()
        self.load_source(self._source_url, self._resume_time)
        return self.state

    def resolve_resume(self, resume: bool) -> None:
        """Answer the resume prompt: continue from the checkpoint or start from zero."""
        checkpoint = self._resume_pending
        if checkpoint is None:
            logger.debug("No resume prompt pending")
            return
        self._resume_pending = None
        self._resume_time = checkpoint.position_seconds if resume else 0.0
        if self._metadata_ready:
            self.engine.seek(self._clamp(self._resume_time))
        self._notify('on_resume_resolved', resume)

    def close(self) -> None:
        """Tear down: stop listening, abandon prefetches and pending saves."""
        if self._closed:
            return
        self._closed = True
        if self._subscribed:
            self.engine.remove_listener(self)
            self._subscribed = False
        self.scheduler.close()
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self._set_state(PlaybackState.CLOSED)

    async def aclose(self) -> None:
        """Close the session, then release the HTTP client it owns."""
        self.close()
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None

    async def wait_idle(self) -> None:
        """Wait for in-flight prefetches and checkpoint saves."""
        await self.scheduler.wait_idle()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _subscribe(self) -> None:
        if not self._subscribed:
            self.engine.add_listener(self)
            self._subscribed = True

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ==================== Engine events ====================

    def on_loaded_metadata(self, duration: float) -> None:
        if self.state is not PlaybackState.LOADING:
            return
        self._duration = duration
        self._metadata_ready = True
        if self._resume_pending is None and self._resume_time > 0:
            self.engine.seek(self._clamp(self._resume_time))
        self._set_state(PlaybackState.READY)

    def on_error(self, error: Exception) -> None:
        if self.state is PlaybackState.LOADING:
            logger.warning(f"Loading {self._source_url} failed: {error}")
            self.load_error = error
            self._set_state(PlaybackState.ERROR)
        else:
            logger.warning(f"Media engine error while {self.state.value}: {error}")

    def on_play(self) -> None:
        if self.state in (PlaybackState.READY, PlaybackState.PAUSED):
            self._set_state(PlaybackState.PLAYING)

    def on_pause(self) -> None:
        if self.state is PlaybackState.PLAYING:
            self._set_state(PlaybackState.PAUSED)

    def on_progress(self) -> None:
        self.buffer_health = self.monitor.sample(
            self.engine.buffered, self.engine.current_time, self.engine.duration)

    def on_time_update(self, current_time: float, duration: float) -> None:
        if self._closed:
            return
        self.buffer_health = self.monitor.sample(self.engine.buffered, current_time, duration)
        self.scheduler.on_playback_tick(current_time)
        self.save_checkpoint_throttled(current_time, duration)
        if math.floor(current_time) % LOCAL_PROGRESS_EVERY == 0:
            self._update_history(current_time, duration)
        self._notify('on_time_update', current_time, duration)

    def on_ended(self) -> None:
        if self._closed or self.state is PlaybackState.ENDED:
            return
        duration = self._duration or self.engine.duration
        self.save_checkpoint_throttled(duration, duration, force=True)
        self._update_history(duration, duration)
        self._set_state(PlaybackState.ENDED)
        self._notify('on_ended')

    # ==================== Progress persistence ====================

    def save_checkpoint_throttled(self, position: float, duration: float, force: bool = False) -> bool:
        """Persist progress at most once per save interval; ``force`` skips the throttle.

        The interval is measured from the last dispatched save, whether or not
        it succeeded, so a failing store is not retried on every tick.

        Returns:
            Whether a save was dispatched
        """
        if self.user_id is None or self.video is None or duration < MIN_SAVE_DURATION:
            return False
        now = self.clock()
        if not force and self._last_save is not None and now - self._last_save < self.save_interval:
            return False
        self._last_save = now
        self._spawn(self._save_checkpoint(self.video.video_id, position, duration))
        return True

    async def _save_checkpoint(self, video_id: str, position: float, duration: float) -> None:
        try:
            await self.progress.save_checkpoint(self.user_id, video_id, position, duration)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Saving checkpoint {position:.1f}/{duration:.1f} for {video_id} failed: {e}")

    def _update_history(self, position: float, duration: float) -> None:
        if self.history is None or duration <= 0:
            return
        self.history.update_watch_progress(
            self.series_id,
            self.episode_id,
            position,
            duration,
            video_id=self.video.video_id if self.video is not None else None,
        )

    # ==================== Transport ====================

    def _clamp(self, time_seconds: float) -> float:
        duration = self._duration or self.engine.duration
        return min(max(time_seconds, 0.0), duration)

    def play(self) -> bool:
        if self._resume_pending is not None:
            logger.info("Resume prompt unanswered, holding playback")
            return False
        if self.state not in (PlaybackState.READY, PlaybackState.PAUSED):
            return False
        self.engine.play()
        return True

    def pause(self) -> bool:
        if self.state is not PlaybackState.PLAYING:
            return False
        self.engine.pause()
        return True

    def toggle_play(self) -> bool:
        if self.state is PlaybackState.PLAYING:
            return self.pause()
        return self.play()

    def seek_to(self, time_seconds: float) -> bool:
        if self.state not in SEEKABLE_STATES:
            return False
        self.engine.seek(self._clamp(time_seconds))
        return True

    def skip(self, delta_seconds: float) -> bool:
        return self.seek_to(self.engine.current_time + delta_seconds)

    def set_volume(self, volume: float) -> None:
        volume = min(max(volume, 0.0), 1.0)
        self.engine.volume = volume
        self.engine.muted = volume == 0

    def nudge_volume(self, delta: float) -> None:
        self.set_volume(round(self.engine.volume + delta, 2))

    def set_muted(self, muted: bool) -> None:
        self.engine.muted = muted

    def toggle_mute(self) -> None:
        self.set_muted(not self.engine.muted)

    def set_playback_rate(self, rate: float) -> None:
        if rate not in PLAYBACK_RATES:
            raise ValueError(f"Unsupported playback rate {rate}, expected one of {PLAYBACK_RATES}")
        self.engine.playback_rate = rate

    def request_fullscreen(self) -> None:
        self.engine.request_fullscreen()

    def handle_key(self, code: str) -> bool:
        """Apply a keyboard shortcut. Returns whether the key was handled."""
        if code == 'Space':
            self.toggle_play()
        elif code == 'ArrowLeft':
            self.skip(-SEEK_STEP)
        elif code == 'ArrowRight':
            self.skip(SEEK_STEP)
        elif code == 'ArrowUp':
            self.nudge_volume(VOLUME_STEP)
        elif code == 'ArrowDown':
            self.nudge_volume(-VOLUME_STEP)
        elif code == 'KeyM':
            self.toggle_mute()
        else:
            return False
        return True

    # ==================== Rendering ====================

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            state=self.state,
            current_time=self.engine.current_time,
            duration=self._duration,
            playing=self.state is PlaybackState.PLAYING,
            volume=self.engine.volume,
            muted=self.engine.muted,
            playback_rate=self.engine.playback_rate,
            buffered_percent=self.buffer_health.buffered_percent_of_duration,
            health_percent=self.buffer_health.health_percent,
            health_status=self.buffer_health.status,
            segments_loaded=self.scheduler.loaded_segments,
            total_segments=self.scheduler.total_segments,
            resume_prompt_pending=self.resume_prompt_pending,
        )
