"""End-to-end tests of the simulation script and its argument helpers."""

import argparse
import asyncio
import os
import tempfile
import unittest

from vodstream.args import add_session_args, add_simulation_args, parse_options
from vodstream.core.segment import constant_bitrate_segments
from vodstream.session import PlaybackState
from vodstream.simulate import (
    calculate_simulation_statistics,
    main,
    prepare_simulation,
    simulating,
)


class TestParseOptions(unittest.TestCase):

    def test_literals_and_strings(self):
        options = parse_options(['a=1', 'b=hello', 'c=[1, 2]', 'd=0.5', 'e=x=y'])
        self.assertEqual(options, {'a': 1, 'b': 'hello', 'c': [1, 2], 'd': 0.5, 'e': 'x=y'})

    def test_invalid_option(self):
        with self.assertRaises(ValueError):
            parse_options(['novalue'])

    def test_argument_defaults(self):
        parser = argparse.ArgumentParser()
        add_session_args(parser)
        add_simulation_args(parser)
        args = parser.parse_args([])
        self.assertEqual(args.preload_buffer_size, 3)
        self.assertEqual(args.min_request_interval, 5.0)
        self.assertEqual(args.save_interval, 10.0)
        self.assertEqual(args.segment_duration, 6.0)
        self.assertIsNone(args.trace_folder)


class TestSimulation(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.log_file = os.path.join(self.tmp.name, 'results', 'log_sim')

    def tearDown(self):
        self.tmp.cleanup()

    def test_main_plays_to_end(self):
        state = main([
            '--total-segments', '5',
            '--bandwidth-mbps', '10',
            '--tick', '0.5',
            '--log-file', self.log_file,
            '--log-level', 'WARNING',
            '-o', 'healthy_lookahead=20',
        ])
        self.assertIs(state, PlaybackState.ENDED)

        stats = calculate_simulation_statistics(self.log_file)
        self.assertGreaterEqual(stats['session_seconds'], 30.0)
        self.assertGreater(stats['rebuffer_total'], 0.0)
        self.assertLessEqual(stats['health_mean'], 100.0)

    def test_resume_skips_ahead(self):
        media = constant_bitrate_segments(50, 1200.0, 6.0)
        session, engine, progress = prepare_simulation(
            series_id='s1',
            episode_number=1,
            media=media,
            user_id='u1',
            bandwidth_mbps=10.0,
            resume_position=250.0,
        )
        state = asyncio.run(simulating(session, engine, self.log_file, tick=0.5, resume=True))

        self.assertIs(state, PlaybackState.ENDED)
        self.assertTrue(session.resume_decision.should_prompt)
        self.assertLess(engine.clock(), 100.0)
        self.assertEqual(progress.saved[-1], ('u1', 's1-ep1', 300.0, 300.0))

    def test_logged_out_session_saves_nothing(self):
        media = constant_bitrate_segments(3, 800.0, 6.0)
        session, engine, progress = prepare_simulation(
            series_id='s1',
            episode_number=1,
            media=media,
            user_id=None,
            bandwidth_mbps=10.0,
        )
        state = asyncio.run(simulating(session, engine, self.log_file, tick=0.5))

        self.assertIs(state, PlaybackState.ENDED)
        self.assertEqual(progress.saved, [])


if __name__ == '__main__':
    unittest.main()
