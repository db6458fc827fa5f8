"""In-memory collaborators for simulation and tests."""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..core.segment import SegmentDescriptorSet, SegmentSummary, VideoInfo
from ..errors import VideoNotFoundError
from ..progress import WatchCheckpoint
from ..progress.checkpoint import utcnow
from .abc import AbstractCatalogGateway, AbstractProgressGateway


class InMemoryCatalog(AbstractCatalogGateway):
    """Catalog holding videos by (series, episode number)."""

    def __init__(self):
        self._videos: Dict[Tuple[str, int], VideoInfo] = {}
        self._segments: Dict[str, SegmentDescriptorSet] = {}

    def add_video(
        self,
        series_id: str,
        episode_number: int,
        video: VideoInfo,
        descriptors: Optional[SegmentDescriptorSet] = None,
    ) -> None:
        self._videos[(series_id, episode_number)] = video
        if descriptors is not None:
            self._segments[video.video_id] = descriptors

    async def get_video_for_episode(self, series_id: str, episode_number: int) -> VideoInfo:
        video = self._videos.get((series_id, episode_number))
        if video is None or not video.is_playable:
            raise VideoNotFoundError(series_id, episode_number)
        return video

    async def get_segment_summary(self, video_id: str, limit: int) -> SegmentSummary:
        descriptors = self._segments.get(video_id)
        if descriptors is None:
            return SegmentSummary(total_segments=0)
        shown = min(limit, descriptors.total_segments)
        return SegmentSummary(
            total_segments=descriptors.total_segments,
            initial_segment_names=descriptors.segment_names(0, shown),
        )


class InMemoryProgressStore(AbstractProgressGateway):
    """Progress store with upsert-by-key semantics that remembers every call."""

    def __init__(self, now: Callable[[], datetime] = utcnow):
        self.now = now
        self.saved: List[Tuple[str, str, float, float]] = []
        self._checkpoints: Dict[Tuple[str, str], WatchCheckpoint] = {}

    async def save_checkpoint(
        self,
        user_id: str,
        video_id: str,
        position_seconds: float,
        duration_seconds: float,
    ) -> None:
        self.saved.append((user_id, video_id, position_seconds, duration_seconds))
        self._checkpoints[(user_id, video_id)] = WatchCheckpoint.create(
            user_id=user_id,
            video_id=video_id,
            position_seconds=position_seconds,
            total_duration_seconds=duration_seconds,
            saved_at=self.now(),
        )

    async def get_checkpoint(self, user_id: str, video_id: str) -> Optional[WatchCheckpoint]:
        return self._checkpoints.get((user_id, video_id))
