"""Session states, snapshots and listener callbacks."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..progress import WatchCheckpoint


class PlaybackState(str, Enum):
    """Lifecycle of one playback session.

    IDLE -> LOADING -> READY <-> PLAYING <-> PAUSED -> ENDED, with
    LOADING -> ERROR on a failed load (retry re-enters LOADING).
    UNAVAILABLE marks an episode without a completed video and CLOSED a
    torn-down session.
    """
    IDLE = 'idle'
    LOADING = 'loading'
    READY = 'ready'
    PLAYING = 'playing'
    PAUSED = 'paused'
    ENDED = 'ended'
    ERROR = 'error'
    UNAVAILABLE = 'unavailable'
    CLOSED = 'closed'


SEEKABLE_STATES = frozenset({PlaybackState.READY, PlaybackState.PLAYING, PlaybackState.PAUSED})


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Everything the UI needs to render the player at one instant."""
    state: PlaybackState
    current_time: float
    duration: float
    playing: bool
    volume: float
    muted: bool
    playback_rate: float
    buffered_percent: float
    health_percent: float
    health_status: str
    segments_loaded: int
    total_segments: int
    resume_prompt_pending: bool

    @property
    def progress_percent(self) -> float:
        if self.duration <= 0:
            return 0.0
        return min(self.current_time / self.duration * 100.0, 100.0)


class SessionListener:
    """Receiver of session events. All callbacks default to no-ops."""

    def on_state_change(self, old: PlaybackState, new: PlaybackState) -> None:
        pass

    def on_time_update(self, current_time: float, duration: float) -> None:
        pass

    def on_ended(self) -> None:
        """Playback finished; up-next and autoplay decisions belong to the caller."""

    def on_resume_prompt(self, checkpoint: WatchCheckpoint) -> None:
        """The caller must answer with ``resolve_resume`` before playback starts."""

    def on_resume_resolved(self, resume: bool) -> None:
        pass


def format_time(seconds: Optional[float]) -> str:
    """Render a position as ``H:MM:SS``, or ``M:SS`` below one hour."""
    if not seconds or seconds < 0:
        seconds = 0
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
