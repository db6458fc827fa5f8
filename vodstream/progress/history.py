"""Local watch history, the per-user progress cache keyed by episode."""

import json
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from .checkpoint import WatchCheckpoint, ResumeDecision, decide_resume, utcnow


logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 100


class WatchHistory:
    """Most recent watch progress per (series, episode), newest first.

    Writing an episode again replaces its previous entry; only the
    ``max_entries`` most recently watched episodes are kept.
    """

    def __init__(
        self,
        user_id: Optional[str] = None,
        max_entries: int = MAX_HISTORY_ENTRIES,
        now: Callable[[], datetime] = utcnow,
    ):
        self.user_id = user_id
        self.max_entries = max_entries
        self.now = now
        self._entries: Dict[Tuple[str, str], WatchCheckpoint] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def update_watch_progress(
        self,
        series_id: str,
        episode_id: str,
        position: float,
        duration: float,
        video_id: Optional[str] = None,
    ) -> Optional[WatchCheckpoint]:
        """Record progress for an episode; ignored without a user or a duration."""
        if self.user_id is None or duration <= 0:
            return None

        entry = WatchCheckpoint.create(
            user_id=self.user_id,
            video_id=video_id,
            position_seconds=position,
            total_duration_seconds=duration,
            saved_at=self.now(),
            series_id=series_id,
            episode_id=episode_id,
        )
        self._entries.pop((series_id, episode_id), None)
        self._entries[(series_id, episode_id)] = entry
        self._trim()
        return entry

    def _trim(self) -> None:
        if len(self._entries) <= self.max_entries:
            return
        keep = self.entries()[:self.max_entries]
        self._entries = {
            (e.series_id, e.episode_id): e for e in reversed(keep)
        }

    def get_watch_progress(self, series_id: str, episode_id: str) -> Optional[WatchCheckpoint]:
        if self.user_id is None:
            return None
        return self._entries.get((series_id, episode_id))

    def get_resume_prompt(self, series_id: str, episode_id: str) -> ResumeDecision:
        return decide_resume(self.get_watch_progress(series_id, episode_id), now=self.now())

    def entries(self) -> List[WatchCheckpoint]:
        """All entries, most recently watched first."""
        return sorted(self._entries.values(), key=lambda e: e.saved_at, reverse=True)

    # ==================== Serialization ====================

    def to_json(self) -> str:
        return json.dumps([e.to_dict() for e in self.entries()], ensure_ascii=False)

    @classmethod
    def from_json(
        cls,
        payload: str,
        user_id: Optional[str] = None,
        max_entries: int = MAX_HISTORY_ENTRIES,
        now: Callable[[], datetime] = utcnow,
    ) -> 'WatchHistory':
        """Restore a history, dropping entries that cannot be parsed."""
        history = cls(user_id=user_id, max_entries=max_entries, now=now)
        try:
            raw_entries = json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable watch history")
            return history
        if not isinstance(raw_entries, list):
            logger.warning("Discarding watch history that is not a list")
            return history

        for raw in reversed(raw_entries):
            entry = WatchCheckpoint.from_dict(raw) if isinstance(raw, dict) else None
            if entry is None or entry.series_id is None or entry.episode_id is None:
                logger.debug(f"Skipping corrupt watch history entry: {raw!r}")
                continue
            history._entries[(entry.series_id, entry.episode_id)] = entry
        history._trim()
        return history
