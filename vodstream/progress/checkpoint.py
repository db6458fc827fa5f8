"""Watch checkpoints and the resume-prompt rule."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional


COMPLETION_PERCENTAGE = 90.0  # at or above this, an episode counts as watched
RESUME_MIN_POSITION = 120.0  # sec, shorter progress is not worth a prompt
RESUME_MAX_AGE = timedelta(days=30)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def watch_percentage(position: float, duration: float) -> float:
    """Share of ``duration`` covered by ``position``, clamped to [0, 100]."""
    if duration <= 0:
        return 0.0
    return min(max(position / duration * 100.0, 0.0), 100.0)


@dataclass(frozen=True)
class WatchCheckpoint:
    """A persisted (position, duration) pair for one user and video.

    ``series_id`` and ``episode_id`` are only set on entries of the local
    watch history, which is keyed by episode rather than by video.
    """
    user_id: Optional[str]
    video_id: Optional[str]
    position_seconds: float
    total_duration_seconds: float
    percentage: float
    saved_at: datetime = field(default_factory=utcnow)
    series_id: Optional[str] = None
    episode_id: Optional[str] = None

    @classmethod
    def create(
        cls,
        user_id: Optional[str],
        video_id: Optional[str],
        position_seconds: float,
        total_duration_seconds: float,
        saved_at: Optional[datetime] = None,
        **kwargs,
    ) -> 'WatchCheckpoint':
        """Build a checkpoint, deriving the percentage from position and duration."""
        if total_duration_seconds <= 0:
            raise ValueError(f"duration must be positive, got {total_duration_seconds}")
        position_seconds = max(position_seconds, 0.0)
        return cls(
            user_id=user_id,
            video_id=video_id,
            position_seconds=position_seconds,
            total_duration_seconds=total_duration_seconds,
            percentage=watch_percentage(position_seconds, total_duration_seconds),
            saved_at=saved_at if saved_at is not None else utcnow(),
            **kwargs,
        )

    @property
    def completed(self) -> bool:
        return self.percentage >= COMPLETION_PERCENTAGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'userId': self.user_id,
            'videoId': self.video_id,
            'seriesId': self.series_id,
            'episodeId': self.episode_id,
            'progress': self.position_seconds,
            'duration': self.total_duration_seconds,
            'percentage': self.percentage,
            'lastWatchedAt': self.saved_at.isoformat(),
            'completed': self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['WatchCheckpoint']:
        """Parse a stored checkpoint; corrupt or incomplete data yields ``None``."""
        try:
            saved_at = parse_timestamp(data['lastWatchedAt'])
            return cls.create(
                user_id=data.get('userId'),
                video_id=data.get('videoId'),
                position_seconds=float(data['progress']),
                total_duration_seconds=float(data['duration']),
                saved_at=saved_at,
                series_id=data.get('seriesId'),
                episode_id=data.get('episodeId'),
            )
        except (KeyError, TypeError, ValueError):
            return None


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 or ``YYYY-MM-DD HH:MM:SS`` timestamp, assuming UTC if naive."""
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {value!r}")
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class ResumeDecision:
    """Whether to ask the user about continuing, and from which checkpoint."""
    should_prompt: bool
    checkpoint: Optional[WatchCheckpoint] = None


NO_PROMPT = ResumeDecision(should_prompt=False)


def decide_resume(
    checkpoint: Optional[WatchCheckpoint],
    now: Optional[datetime] = None,
    min_position: float = RESUME_MIN_POSITION,
    completion_percentage: float = COMPLETION_PERCENTAGE,
    max_age: timedelta = RESUME_MAX_AGE,
) -> ResumeDecision:
    """Apply the resume-prompt rule to the most recent checkpoint.

    Prompt only if at least ``min_position`` seconds were watched, the episode
    is not completed, and the checkpoint is no older than ``max_age``.
    """
    if checkpoint is None:
        return NO_PROMPT
    if checkpoint.position_seconds < min_position:
        return NO_PROMPT
    if checkpoint.percentage >= completion_percentage:
        return NO_PROMPT
    now = now if now is not None else utcnow()
    if now - checkpoint.saved_at > max_age:
        return NO_PROMPT
    return ResumeDecision(should_prompt=True, checkpoint=checkpoint)
