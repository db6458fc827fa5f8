"""Unit tests for watch checkpoints, the resume rule and the local watch history."""

import itertools
import json
import unittest
from datetime import datetime, timedelta, timezone

from vodstream.progress import (
    NO_PROMPT,
    WatchCheckpoint,
    WatchHistory,
    decide_resume,
    parse_timestamp,
    watch_percentage,
)


NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def checkpoint(position, duration, age=timedelta(days=2)):
    return WatchCheckpoint.create(
        user_id='u1',
        video_id='v1',
        position_seconds=position,
        total_duration_seconds=duration,
        saved_at=NOW - age,
    )


# ==============================================================================
# TEST CLASS 1: Checkpoint tests
# ==============================================================================

class TestWatchCheckpoint(unittest.TestCase):

    def test_percentage_derived(self):
        cp = checkpoint(150.0, 250.0)
        self.assertEqual(cp.percentage, 60.0)
        self.assertFalse(cp.completed)

    def test_percentage_clamped(self):
        self.assertEqual(checkpoint(300.0, 250.0).percentage, 100.0)
        self.assertEqual(checkpoint(-5.0, 250.0).position_seconds, 0.0)
        self.assertEqual(watch_percentage(10.0, 0.0), 0.0)

    def test_completed_at_ninety_percent(self):
        self.assertTrue(checkpoint(90.0, 100.0).completed)
        self.assertFalse(checkpoint(89.9, 100.0).completed)

    def test_zero_duration_rejected(self):
        with self.assertRaises(ValueError):
            checkpoint(10.0, 0.0)

    def test_dict_round_trip(self):
        cp = WatchCheckpoint.create(
            user_id='u1', video_id='v1', position_seconds=42.0,
            total_duration_seconds=84.0, saved_at=NOW, series_id='s1', episode_id='3',
        )
        data = cp.to_dict()
        self.assertEqual(data['progress'], 42.0)
        self.assertEqual(data['percentage'], 50.0)
        self.assertEqual(WatchCheckpoint.from_dict(data), cp)

    def test_corrupt_dict(self):
        self.assertIsNone(WatchCheckpoint.from_dict({'progress': 'abc'}))
        self.assertIsNone(WatchCheckpoint.from_dict({
            'progress': 'abc', 'duration': 10, 'lastWatchedAt': NOW.isoformat(),
        }))
        self.assertIsNone(WatchCheckpoint.from_dict({
            'progress': 5, 'duration': 0, 'lastWatchedAt': NOW.isoformat(),
        }))
        for saved_at in (1700000000000, None):
            with self.subTest(lastWatchedAt=saved_at):
                self.assertIsNone(WatchCheckpoint.from_dict({
                    'progress': 150, 'duration': 300, 'lastWatchedAt': saved_at,
                }))

    def test_parse_timestamp_rejects_non_strings(self):
        with self.assertRaises(TypeError):
            parse_timestamp(12345)

    def test_parse_timestamp(self):
        self.assertEqual(parse_timestamp('2026-01-10T12:00:00Z'), NOW)
        self.assertEqual(parse_timestamp('2026-01-10 12:00:00'), NOW)
        self.assertEqual(parse_timestamp('2026-01-10T13:00:00+01:00'), NOW)


# ==============================================================================
# TEST CLASS 2: Resume rule tests
# ==============================================================================

class TestDecideResume(unittest.TestCase):

    def test_decision_table(self):
        cases = [
            ('150 s, 60 %, 2 days', checkpoint(150.0, 250.0), True),
            ('95 % watched', checkpoint(237.5, 250.0), False),
            ('exactly 90 %', checkpoint(225.0, 250.0), False),
            ('only 100 s', checkpoint(100.0, 1000.0), False),
            ('40 days old', checkpoint(150.0, 250.0, age=timedelta(days=40)), False),
            ('boundary 120 s, 30 days', checkpoint(120.0, 1000.0, age=timedelta(days=30)), True),
            ('no checkpoint', None, False),
        ]
        for name, cp, expected in cases:
            with self.subTest(name):
                decision = decide_resume(cp, now=NOW)
                self.assertEqual(decision.should_prompt, expected)
                if expected:
                    self.assertIs(decision.checkpoint, cp)
                else:
                    self.assertEqual(decision, NO_PROMPT)

    def test_custom_thresholds(self):
        cp = checkpoint(60.0, 250.0)
        self.assertFalse(decide_resume(cp, now=NOW).should_prompt)
        self.assertTrue(decide_resume(cp, now=NOW, min_position=30.0).should_prompt)


# ==============================================================================
# TEST CLASS 3: Watch history tests
# ==============================================================================

class TestWatchHistory(unittest.TestCase):

    def setUp(self):
        ticks = itertools.count()
        self.now = lambda: NOW + timedelta(seconds=next(ticks))
        self.history = WatchHistory(user_id='u1', now=self.now)

    def test_requires_user(self):
        history = WatchHistory(user_id=None)
        self.assertIsNone(history.update_watch_progress('s1', '1', 10.0, 100.0))
        self.assertEqual(len(history), 0)
        self.assertIsNone(history.get_watch_progress('s1', '1'))

    def test_update_overwrites_episode(self):
        self.history.update_watch_progress('s1', '1', 10.0, 100.0, video_id='v1')
        self.history.update_watch_progress('s1', '1', 95.0, 100.0, video_id='v1')
        self.assertEqual(len(self.history), 1)
        entry = self.history.get_watch_progress('s1', '1')
        self.assertEqual(entry.position_seconds, 95.0)
        self.assertEqual(entry.video_id, 'v1')
        self.assertTrue(entry.completed)

    def test_zero_duration_ignored(self):
        self.assertIsNone(self.history.update_watch_progress('s1', '1', 10.0, 0.0))
        self.assertEqual(len(self.history), 0)

    def test_newest_first_and_capped(self):
        history = WatchHistory(user_id='u1', max_entries=3, now=self.now)
        for episode in range(1, 6):
            history.update_watch_progress('s1', str(episode), 10.0, 100.0)
        history.update_watch_progress('s1', '3', 20.0, 100.0)

        self.assertEqual(len(history), 3)
        self.assertEqual([e.episode_id for e in history.entries()], ['3', '5', '4'])
        self.assertIsNone(history.get_watch_progress('s1', '1'))

    def test_resume_prompt(self):
        self.history.update_watch_progress('s1', '1', 150.0, 300.0)
        decision = self.history.get_resume_prompt('s1', '1')
        self.assertTrue(decision.should_prompt)
        self.assertFalse(self.history.get_resume_prompt('s1', '2').should_prompt)

    def test_json_round_trip(self):
        self.history.update_watch_progress('s1', '1', 10.0, 100.0)
        self.history.update_watch_progress('s2', '4', 50.0, 100.0)

        restored = WatchHistory.from_json(self.history.to_json(), user_id='u1')
        self.assertEqual(restored.entries(), self.history.entries())

    def test_corrupt_entries_dropped(self):
        self.history.update_watch_progress('s1', '1', 10.0, 100.0)
        payload = json.loads(self.history.to_json())
        payload.append({'bad': 1})
        payload.append('not an entry')
        payload.append({'progress': 1, 'duration': 2, 'lastWatchedAt': NOW.isoformat()})
        payload.append({'seriesId': 's9', 'episodeId': '1', 'progress': 150,
                        'duration': 300, 'lastWatchedAt': 1700000000000})

        restored = WatchHistory.from_json(json.dumps(payload), user_id='u1')
        self.assertEqual(len(restored), 1)
        self.assertEqual(restored.get_watch_progress('s1', '1').position_seconds, 10.0)

    def test_unreadable_payload(self):
        with self.assertLogs('vodstream.progress.history', level='WARNING'):
            restored = WatchHistory.from_json('{not json', user_id='u1')
        self.assertEqual(len(restored), 0)


if __name__ == '__main__':
    unittest.main()
