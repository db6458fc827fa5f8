"""Unit tests for the HTTP catalog, progress and segment collaborators.

Requests are answered by an httpx.MockTransport so no server is needed.
"""

import json
import unittest
from datetime import datetime, timezone

import httpx

from vodstream.errors import GatewayError, VideoNotFoundError
from vodstream.gateway import HttpCatalogGateway, HttpProgressGateway
from vodstream.prefetch import HttpSegmentFetcher


BASE_URL = 'http://test'

VIDEO = {
    'id': 'v1',
    'hlsUrl': '/segments/v1/playlist.m3u8',
    'duration': 300,
    'status': 'completed',
    'totalSegments': 50,
    'title': 'Pilot',
}


class GatewayTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.requests = []
        self.routes = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={'success': False, 'error': 'Not found'})
        if isinstance(route, Exception):
            raise route
        status, payload = route
        return httpx.Response(status, json=payload)

    async def asyncSetUp(self):
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    async def asyncTearDown(self):
        await self.client.aclose()


# ==============================================================================
# TEST CLASS 1: Catalog tests
# ==============================================================================

class TestHttpCatalogGateway(GatewayTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.gateway = HttpCatalogGateway(BASE_URL, client=self.client)

    async def test_video_for_episode(self):
        self.routes[('GET', '/api/videos/s1/3')] = (200, {'success': True, 'video': VIDEO})
        video = await self.gateway.get_video_for_episode('s1', 3)

        self.assertEqual(video.video_id, 'v1')
        self.assertEqual(video.hls_manifest_url, 'http://test/segments/v1/playlist.m3u8')
        self.assertEqual(video.duration_seconds, 300.0)
        self.assertEqual(video.total_segments, 50)
        self.assertEqual(video.title, 'Pilot')

    async def test_missing_video(self):
        with self.assertRaises(VideoNotFoundError) as ctx:
            await self.gateway.get_video_for_episode('s1', 9)
        self.assertEqual(ctx.exception.episode_number, 9)

    async def test_unsuccessful_payload(self):
        self.routes[('GET', '/api/videos/s1/3')] = (200, {'success': False})
        with self.assertRaises(VideoNotFoundError):
            await self.gateway.get_video_for_episode('s1', 3)

    async def test_unfinished_video(self):
        self.routes[('GET', '/api/videos/s1/3')] = (
            200, {'success': True, 'video': dict(VIDEO, status='processing')})
        with self.assertRaises(VideoNotFoundError):
            await self.gateway.get_video_for_episode('s1', 3)

    async def test_server_error(self):
        self.routes[('GET', '/api/videos/s1/3')] = (500, {'success': False})
        with self.assertRaises(GatewayError):
            await self.gateway.get_video_for_episode('s1', 3)

    async def test_connection_error(self):
        self.routes[('GET', '/api/videos/s1/3')] = httpx.ConnectError("connection refused")
        with self.assertRaises(GatewayError):
            await self.gateway.get_video_for_episode('s1', 3)

    async def test_segment_summary(self):
        segments = [{'filename': f"segment_{i:03d}.ts"} for i in range(10)]
        self.routes[('GET', '/api/video/v1/segments')] = (
            200, {'success': True, 'totalSegments': 50, 'segments': segments})
        summary = await self.gateway.get_segment_summary('v1', 3)

        self.assertEqual(self.requests[-1].url.params['limit'], '3')
        self.assertEqual(summary.total_segments, 50)
        self.assertEqual(summary.initial_segment_names,
                         ['segment_000.ts', 'segment_001.ts', 'segment_002.ts'])

    async def test_malformed_segment_summary(self):
        self.routes[('GET', '/api/video/v1/segments')] = (200, {'success': True})
        with self.assertRaises(GatewayError):
            await self.gateway.get_segment_summary('v1', 10)


# ==============================================================================
# TEST CLASS 2: Progress tests
# ==============================================================================

class TestHttpProgressGateway(GatewayTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.gateway = HttpProgressGateway(BASE_URL, client=self.client)

    async def test_save_checkpoint(self):
        self.routes[('POST', '/api/progress')] = (200, {'success': True})
        await self.gateway.save_checkpoint('u1', 'v1', 42.5, 300.0)

        body = json.loads(self.requests[-1].content)
        self.assertEqual(body, {'userId': 'u1', 'videoId': 'v1', 'progress': 42.5, 'duration': 300.0})

    async def test_save_checkpoint_failure(self):
        self.routes[('POST', '/api/progress')] = (500, {'success': False})
        with self.assertRaises(GatewayError):
            await self.gateway.save_checkpoint('u1', 'v1', 42.5, 300.0)

    async def test_get_checkpoint(self):
        self.routes[('GET', '/api/progress/u1/v1')] = (200, {'success': True, 'progress': {
            'user_id': 'u1',
            'video_id': 'v1',
            'progress': 150,
            'duration': 300,
            'percentage': 50,
            'last_watched_at': '2026-01-08 10:00:00',
        }})
        checkpoint = await self.gateway.get_checkpoint('u1', 'v1')

        self.assertEqual(checkpoint.position_seconds, 150.0)
        self.assertEqual(checkpoint.total_duration_seconds, 300.0)
        self.assertEqual(checkpoint.percentage, 50.0)
        self.assertEqual(checkpoint.saved_at, datetime(2026, 1, 8, 10, 0, tzinfo=timezone.utc))

    async def test_no_checkpoint(self):
        self.assertIsNone(await self.gateway.get_checkpoint('u1', 'v1'))
        self.routes[('GET', '/api/progress/u1/v1')] = (200, {'success': True, 'progress': None})
        self.assertIsNone(await self.gateway.get_checkpoint('u1', 'v1'))

    async def test_corrupt_checkpoint(self):
        self.routes[('GET', '/api/progress/u1/v1')] = (200, {'success': True, 'progress': {
            'progress': 'soon', 'duration': 300, 'last_watched_at': '2026-01-08 10:00:00',
        }})
        with self.assertLogs('vodstream.gateway.http', level='WARNING'):
            self.assertIsNone(await self.gateway.get_checkpoint('u1', 'v1'))


# ==============================================================================
# TEST CLASS 3: Segment fetcher tests
# ==============================================================================

class TestHttpSegmentFetcher(GatewayTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.fetcher = HttpSegmentFetcher(BASE_URL, client=self.client)

    async def test_fetch_issues_head(self):
        self.routes[('HEAD', '/segments/v1/segment_004.ts')] = (200, {})
        await self.fetcher.fetch('v1', 'segment_004.ts')
        self.assertEqual(self.requests[-1].method, 'HEAD')
        self.assertEqual(str(self.requests[-1].url), 'http://test/segments/v1/segment_004.ts')

    async def test_missing_segment(self):
        with self.assertRaises(GatewayError):
            await self.fetcher.fetch('v1', 'segment_999.ts')


if __name__ == '__main__':
    unittest.main()
