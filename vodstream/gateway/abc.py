"""Abstract interfaces of the collaborators the playback client consumes."""

from abc import ABC, abstractmethod
from typing import Optional

from ..core.segment import SegmentSummary, VideoInfo
from ..progress import WatchCheckpoint


class AbstractCatalogGateway(ABC):
    """Read access to the video catalog."""

    @abstractmethod
    async def get_video_for_episode(self, series_id: str, episode_number: int) -> VideoInfo:
        """Return the completed video attached to an episode.

        Raises:
            VideoNotFoundError: If no completed video is associated.
            GatewayError: If the catalog could not be reached.
        """
        ...

    @abstractmethod
    async def get_segment_summary(self, video_id: str, limit: int) -> SegmentSummary:
        """Return the segment count and at most ``limit`` initial segment names."""
        ...


class AbstractProgressGateway(ABC):
    """System of record for watch checkpoints, keyed by (user, video)."""

    @abstractmethod
    async def save_checkpoint(
        self,
        user_id: str,
        video_id: str,
        position_seconds: float,
        duration_seconds: float,
    ) -> None:
        """Upsert the checkpoint of a user for a video; last write wins."""
        ...

    @abstractmethod
    async def get_checkpoint(self, user_id: str, video_id: str) -> Optional[WatchCheckpoint]:
        """Return the last saved checkpoint, or ``None`` if there is none."""
        ...
