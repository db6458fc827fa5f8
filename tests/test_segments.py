"""Unit tests for segment descriptors and segment size loading."""

import os
import tempfile
import unittest

from vodstream.core.segment import (
    SegmentDescriptorSet,
    VideoInfo,
    constant_bitrate_segments,
    default_segment_name,
    load_segment_sizes,
)


# ==============================================================================
# TEST CLASS 1: Descriptor tests
# ==============================================================================

class TestSegmentDescriptorSet(unittest.TestCase):

    def setUp(self):
        self.descriptors = SegmentDescriptorSet(video_id='v1', total_segments=50)

    def test_default_naming(self):
        self.assertEqual(default_segment_name(0), 'segment_000.ts')
        self.assertEqual(default_segment_name(7), 'segment_007.ts')
        self.assertEqual(default_segment_name(1234), 'segment_1234.ts')

    def test_segment_names_range(self):
        self.assertEqual(
            self.descriptors.segment_names(2, 5),
            ['segment_002.ts', 'segment_003.ts', 'segment_004.ts'],
        )
        self.assertEqual(self.descriptors.segment_names(3, 3), [])

    def test_segment_name_out_of_range(self):
        with self.assertRaises(IndexError):
            self.descriptors.segment_name(50)
        with self.assertRaises(IndexError):
            self.descriptors.segment_name(-1)

    def test_segment_index_at(self):
        """Playback position maps to floor(t / segment duration)."""
        self.assertEqual(self.descriptors.segment_index_at(0.0), 0)
        self.assertEqual(self.descriptors.segment_index_at(5.99), 0)
        self.assertEqual(self.descriptors.segment_index_at(30.0), 5)
        self.assertEqual(self.descriptors.segment_index_at(-3.0), 0)

    def test_custom_naming_convention(self):
        descriptors = SegmentDescriptorSet(
            video_id='v1',
            total_segments=3,
            naming_convention=lambda i: f"chunk-{i}.m4s",
        )
        self.assertEqual(descriptors.segment_names(0, 3), ['chunk-0.m4s', 'chunk-1.m4s', 'chunk-2.m4s'])

    def test_segment_url(self):
        self.assertEqual(
            self.descriptors.segment_url(4, 'http://localhost:3001/'),
            'http://localhost:3001/segments/v1/segment_004.ts',
        )

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            SegmentDescriptorSet(video_id='v1', total_segments=-1)
        with self.assertRaises(ValueError):
            SegmentDescriptorSet(video_id='v1', total_segments=3, segment_duration_seconds=0)

    def test_video_playable_only_when_completed(self):
        self.assertTrue(VideoInfo('v1', 'http://x/v1.m3u8').is_playable)
        self.assertFalse(VideoInfo('v1', 'http://x/v1.m3u8', status='processing').is_playable)


# ==============================================================================
# TEST CLASS 2: Segment size loader tests
# ==============================================================================

class TestSegmentSizeLoader(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, 'sizes')
        with open(self.path, 'w') as f:
            f.write("100\n200 extra\n\n300\n")

    def tearDown(self):
        self.tmp.cleanup()

    def test_load_sizes(self):
        media = load_segment_sizes(self.path, segment_duration_seconds=4.0)
        self.assertEqual(media.segment_sizes.tolist(), [100, 200, 300])
        self.assertEqual(media.total_segments, 3)
        self.assertEqual(media.duration, 12.0)
        self.assertEqual(media.get_segment_size(1), 200)

    def test_max_segments_truncates(self):
        media = load_segment_sizes(self.path, max_segments=2)
        self.assertEqual(media.segment_sizes.tolist(), [100, 200])

    def test_constant_bitrate(self):
        """1200 Kbps over 6 s segments is 900,000 bytes per segment."""
        media = constant_bitrate_segments(10, 1200.0, 6.0)
        self.assertEqual(media.total_segments, 10)
        self.assertEqual(media.duration, 60.0)
        self.assertEqual(set(media.segment_sizes.tolist()), {900000})


if __name__ == '__main__':
    unittest.main()
