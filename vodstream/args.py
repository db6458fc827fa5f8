"""Argument parsing utilities for vodstream."""

import argparse
import ast
from typing import Any, Dict

from .core.engine import MAX_BUFFER
from .defaults import (
    SEGMENT_DURATION,
    PRELOAD_BUFFER_SIZE,
    MIN_REQUEST_INTERVAL,
    SAVE_INTERVAL,
)

DEFAULT_BITRATE = 1200.  # Kbps
DEFAULT_TOTAL_SEGMENTS = 50
DEFAULT_TICK = 0.25  # sec


def add_session_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments for create_session_with_default.

    These correspond to parameters of create_session_with_default in
    vodstream/defaults.py; less common ones go through ``-o KEY=VALUE``.
    """
    parser.add_argument('--series-id', type=str, default='demo-series',
                        help="Series to play (default: 'demo-series')")
    parser.add_argument('--episode', type=int, default=1,
                        help="Episode number to play (default: 1)")
    parser.add_argument('--user-id', type=str, default='demo-user',
                        help="Authenticated user; pass an empty string to play logged out "
                             "(default: 'demo-user')")
    parser.add_argument('--preload-buffer-size', type=int, default=PRELOAD_BUFFER_SIZE,
                        help=f"Segments to keep warm ahead of the playhead (default: {PRELOAD_BUFFER_SIZE})")
    parser.add_argument('--min-request-interval', type=float, default=MIN_REQUEST_INTERVAL,
                        help=f"Seconds between two prefetch dispatches (default: {MIN_REQUEST_INTERVAL})")
    parser.add_argument('--save-interval', type=float, default=SAVE_INTERVAL,
                        help=f"Seconds between two checkpoint saves (default: {SAVE_INTERVAL})")
    parser.add_argument('-o', '--session-options', type=str, nargs='*', default=[],
                        metavar='KEY=VALUE',
                        help="Extra session kwargs, e.g. healthy_lookahead=20 listing_limit=5")


def add_simulation_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments describing the simulated network and media."""
    network = parser.add_mutually_exclusive_group()
    network.add_argument('--trace-folder', type=str, default=None,
                         help="Folder containing network bandwidth trace files")
    network.add_argument('--bandwidth-mbps', type=float, default=5.0,
                         help="Flat link bandwidth when no trace folder is given (default: 5.0)")
    parser.add_argument('--segment-size-file', type=str, default=None,
                        help="File with one segment size in bytes per line "
                             "(default: constant bitrate segments)")
    parser.add_argument('--bitrate-kbps', type=float, default=DEFAULT_BITRATE,
                        help=f"Bitrate of constant bitrate segments (default: {DEFAULT_BITRATE})")
    parser.add_argument('--total-segments', type=int, default=DEFAULT_TOTAL_SEGMENTS,
                        help=f"Number of constant bitrate segments (default: {DEFAULT_TOTAL_SEGMENTS})")
    parser.add_argument('--segment-duration', type=float, default=SEGMENT_DURATION,
                        help=f"Seconds per segment (default: {SEGMENT_DURATION})")
    parser.add_argument('--max-buffer', type=float, default=MAX_BUFFER,
                        help=f"Seconds of lookahead the engine downloads (default: {MAX_BUFFER})")
    parser.add_argument('--tick', type=float, default=DEFAULT_TICK,
                        help=f"Simulation step in seconds (default: {DEFAULT_TICK})")


def parse_options(options: list) -> Dict[str, Any]:
    """Parse KEY=VALUE options; values are Python literals, or plain strings otherwise."""
    result: Dict[str, Any] = {}
    for opt in options:
        if '=' not in opt:
            raise ValueError(f"Invalid option format: {opt}. Expected KEY=VALUE")
        key, value = opt.split('=', 1)
        try:
            result[key] = ast.literal_eval(value)
        except (ValueError, SyntaxError):
            result[key] = value
    return result
