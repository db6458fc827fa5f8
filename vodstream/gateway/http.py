"""HTTP collaborators speaking the catalog and progress REST API.

Endpoints:
    GET  /api/videos/{series_id}/{episode_number}   video attached to an episode
    GET  /api/video/{video_id}/segments             segment listing of a video
    POST /api/progress                              upsert a watch checkpoint
    GET  /api/progress/{user_id}/{video_id}         last saved checkpoint
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import httpx

from ..core.segment import SegmentSummary, VideoInfo, VIDEO_STATUS_COMPLETED
from ..errors import GatewayError, VideoNotFoundError
from ..progress import WatchCheckpoint, parse_timestamp
from .abc import AbstractCatalogGateway, AbstractProgressGateway


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'http://localhost:3001'
DEFAULT_TIMEOUT = 10.0  # sec


class HttpGateway:
    """Shared plumbing: base URL handling, client ownership and JSON decoding."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip('/')
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, self.url(path), **kwargs)
        except httpx.HTTPError as e:
            raise GatewayError(f"{method} {path} failed: {e}") from e
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPStatusError, ValueError) as e:
            raise GatewayError(f"{response.request.method} {response.request.url} failed: {e}") from e
        if not isinstance(data, dict):
            raise GatewayError(f"Unexpected payload from {response.request.url}: {data!r}")
        return data


class HttpCatalogGateway(HttpGateway, AbstractCatalogGateway):
    """Catalog read endpoints."""

    async def get_video_for_episode(self, series_id: str, episode_number: int) -> VideoInfo:
        response = await self._request('GET', f"/api/videos/{series_id}/{episode_number}")
        if response.status_code == 404:
            raise VideoNotFoundError(series_id, episode_number)
        data = self._json(response)
        video = data.get('video')
        if not data.get('success') or not isinstance(video, dict):
            raise VideoNotFoundError(series_id, episode_number)

        try:
            info = VideoInfo(
                video_id=str(video['id']),
                hls_manifest_url=urljoin(self.base_url + '/', video['hlsUrl']),
                duration_seconds=_optional_float(video.get('duration')),
                status=video.get('status', VIDEO_STATUS_COMPLETED),
                total_segments=video.get('totalSegments'),
                title=video.get('title') or '',
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError(f"Malformed video entry for {series_id}/{episode_number}: {e}") from e
        if not info.is_playable:
            raise VideoNotFoundError(series_id, episode_number)
        return info

    async def get_segment_summary(self, video_id: str, limit: int) -> SegmentSummary:
        response = await self._request('GET', f"/api/video/{video_id}/segments",
                                       params={'limit': limit})
        data = self._json(response)
        try:
            total = int(data['totalSegments'])
            names = [s['filename'] for s in data.get('segments', [])[:limit]]
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError(f"Malformed segment listing for {video_id}: {e}") from e
        return SegmentSummary(total_segments=total, initial_segment_names=names)


class HttpProgressGateway(HttpGateway, AbstractProgressGateway):
    """Watch progress endpoints."""

    async def save_checkpoint(
        self,
        user_id: str,
        video_id: str,
        position_seconds: float,
        duration_seconds: float,
    ) -> None:
        response = await self._request('POST', '/api/progress', json={
            'userId': user_id,
            'videoId': video_id,
            'progress': position_seconds,
            'duration': duration_seconds,
        })
        self._json(response)

    async def get_checkpoint(self, user_id: str, video_id: str) -> Optional[WatchCheckpoint]:
        response = await self._request('GET', f"/api/progress/{user_id}/{video_id}")
        if response.status_code == 404:
            return None
        row = self._json(response).get('progress')
        if not row:
            return None
        try:
            return WatchCheckpoint.create(
                user_id=row.get('user_id', user_id),
                video_id=row.get('video_id', video_id),
                position_seconds=float(row['progress']),
                total_duration_seconds=float(row['duration']),
                saved_at=parse_timestamp(row['last_watched_at']),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring corrupt checkpoint for {user_id}/{video_id}: {e}")
            return None


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None
