"""Segment fetchers used to warm caches ahead of the playhead."""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import httpx

from ..errors import GatewayError
from ..gateway.http import HttpGateway


class AbstractSegmentFetcher(ABC):
    """Issues one lightweight request that warms a segment in cache."""

    @abstractmethod
    async def fetch(self, video_id: str, segment_name: str) -> None:
        """Warm one segment. Raises on failure; callers decide whether to care."""
        ...


class HttpSegmentFetcher(HttpGateway, AbstractSegmentFetcher):
    """Warms segments with HEAD requests against ``/segments/{video_id}/{name}``."""

    async def fetch(self, video_id: str, segment_name: str) -> None:
        response = await self._request('HEAD', f"/segments/{video_id}/{segment_name}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GatewayError(f"Segment {video_id}/{segment_name} unavailable: {e}") from e


class InMemorySegmentFetcher(AbstractSegmentFetcher):
    """Records fetched names; names listed in ``missing`` fail."""

    def __init__(self, missing: Optional[Iterable[str]] = None):
        self.missing = set(missing or ())
        self.fetched: List[str] = []

    async def fetch(self, video_id: str, segment_name: str) -> None:
        if segment_name in self.missing:
            raise GatewayError(f"Segment {video_id}/{segment_name} unavailable")
        self.fetched.append(segment_name)
