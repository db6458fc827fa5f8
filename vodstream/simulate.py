"""Simulation script for vodstream.

Plays one episode end to end against the trace-driven simulated engine and
in-memory collaborators, writing one log line per simulation step:

    clock  state  current_time  buffer_ahead  rebuffer  buffered%  health%  loaded/total
"""

import argparse
import asyncio
import logging
import os
from datetime import timedelta
from typing import Dict, Optional, Tuple

import numpy as np

from .args import add_session_args, add_simulation_args, parse_options
from .core import create_simulated_engine
from .core.engine import SimulatedMediaEngine
from .core.segment import (
    SegmentDescriptorSet,
    SegmentMedia,
    VideoInfo,
    constant_bitrate_segments,
    load_segment_sizes,
)
from .defaults import DEFAULT_BASE_URL, create_session_with_default
from .gateway import InMemoryCatalog, InMemoryProgressStore
from .prefetch import InMemorySegmentFetcher
from .progress import WatchHistory
from .progress.checkpoint import utcnow
from .session import PlaybackSessionController, PlaybackState


logger = logging.getLogger(__name__)

SIMULATION_LOG_FOLDER = './simulation_results/'
LOG_FILE = os.path.join(SIMULATION_LOG_FOLDER, 'log_sim')

TERMINAL_STATES = frozenset({
    PlaybackState.ENDED,
    PlaybackState.ERROR,
    PlaybackState.UNAVAILABLE,
    PlaybackState.CLOSED,
})


def prepare_media(
    segment_size_file: Optional[str],
    bitrate_kbps: float,
    total_segments: int,
    segment_duration: float,
) -> SegmentMedia:
    """Segment sizes from a file, or a constant bitrate rendition."""
    if segment_size_file is not None:
        return load_segment_sizes(segment_size_file, segment_duration, max_segments=total_segments)
    return constant_bitrate_segments(total_segments, bitrate_kbps, segment_duration)


def prepare_simulation(
    series_id: str,
    episode_number: int,
    media: SegmentMedia,
    user_id: Optional[str] = None,
    trace_folder: Optional[str] = None,
    bandwidth_mbps: Optional[float] = None,
    max_buffer: Optional[float] = None,
    resume_position: Optional[float] = None,
    session_options: Optional[Dict] = None,
) -> Tuple[PlaybackSessionController, SimulatedMediaEngine, InMemoryProgressStore]:
    """Wire a session over a simulated engine and in-memory collaborators.

    Args:
        series_id: Series the simulated episode belongs to
        episode_number: Episode number of the simulated episode
        media: Segment sizes of the only rendition
        user_id: Watching user, or None to play logged out
        trace_folder: Network traces to download over
        bandwidth_mbps: Flat bandwidth when no trace folder is given
        max_buffer: Engine download lookahead in seconds
        resume_position: Seeds the watch history as if the user stopped here
                         an hour ago, so the resume prompt shows up
        session_options: Extra kwargs for create_session_with_default

    Returns:
        (session, engine, progress store)
    """
    video_id = f"{series_id}-ep{episode_number}"
    manifest_url = f"{DEFAULT_BASE_URL}/segments/{video_id}/playlist.m3u8"

    catalog = InMemoryCatalog()
    catalog.add_video(
        series_id,
        episode_number,
        VideoInfo(
            video_id=video_id,
            hls_manifest_url=manifest_url,
            duration_seconds=media.duration,
            total_segments=media.total_segments,
        ),
        SegmentDescriptorSet(
            video_id=video_id,
            total_segments=media.total_segments,
            segment_duration_seconds=media.segment_duration_seconds,
        ),
    )

    engine_kwargs = {} if max_buffer is None else {'max_buffer': max_buffer}
    engine = create_simulated_engine(
        {manifest_url: media},
        trace_folder=trace_folder,
        bandwidth_mbps=bandwidth_mbps,
        **engine_kwargs,
    )

    history = WatchHistory(user_id=user_id)
    if resume_position is not None and user_id is not None:
        stopped_at = utcnow() - timedelta(hours=1)
        history.now = lambda: stopped_at
        history.update_watch_progress(series_id, str(episode_number), resume_position,
                                      media.duration, video_id=video_id)
        history.now = utcnow

    progress = InMemoryProgressStore()
    options = dict(session_options or {})
    options.setdefault('segment_duration', media.segment_duration_seconds)
    session = create_session_with_default(
        engine,
        series_id,
        episode_number,
        user_id=user_id,
        history=history,
        catalog=catalog,
        progress=progress,
        fetcher=InMemorySegmentFetcher(),
        clock=engine.clock,
        **options,
    )
    return session, engine, progress


async def simulating(
    session: PlaybackSessionController,
    engine: SimulatedMediaEngine,
    log_file_path: str,
    tick: float,
    resume: bool = True,
) -> PlaybackState:
    """Run one session until it reaches a terminal state.

    The loop structure is:
        open the session, answer the resume prompt, start playback, then
        while not terminal:
            1. step(tick) - advance the engine clock
            2. yield to the event loop so prefetch and save tasks progress
            3. write log
    """
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    with open(log_file_path, 'w') as log_file:
        await session.open()
        if session.resume_prompt_pending:
            session.resolve_resume(resume)

        play_requested = False
        while session.state not in TERMINAL_STATES:
            result = engine.step(tick)
            await asyncio.sleep(0)

            if not play_requested and session.state is PlaybackState.READY:
                play_requested = session.play()

            snapshot = session.snapshot()
            log_file.write(str(engine.clock()) + '\t' +
                           snapshot.state.value + '\t' +
                           str(result.current_time) + '\t' +
                           str(result.buffer_ahead) + '\t' +
                           str(result.rebuffer) + '\t' +
                           str(snapshot.buffered_percent) + '\t' +
                           str(snapshot.health_percent) + '\t' +
                           f"{snapshot.segments_loaded}/{snapshot.total_segments}" + '\n')
        log_file.flush()

    await session.wait_idle()
    return session.state


def calculate_simulation_statistics(log_file_path: str) -> Dict[str, float]:
    """Summarize a simulation log.

    Returns:
        Dictionary with total rebuffer, mean and minimum health, and the
        simulated session length in seconds.
    """
    clocks, rebuffers, healths = [], [], []
    with open(log_file_path, 'r') as f:
        for line in f:
            parse = line.split()
            if len(parse) < 8:
                continue
            clocks.append(float(parse[0]))
            rebuffers.append(float(parse[4]))
            healths.append(float(parse[6]))

    if not clocks:
        return {}
    healths = np.array(healths)
    return {
        'session_seconds': clocks[-1],
        'rebuffer_total': float(np.sum(rebuffers)),
        'health_mean': float(np.mean(healths)),
        'health_min': float(np.min(healths)),
        'health_5per': float(np.percentile(healths, 5)),
    }


def add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--log-file', type=str, default=LOG_FILE,
                        help=f"Path of the per-step simulation log (default: {LOG_FILE})")
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help="Logging level (default: INFO)")
    parser.add_argument('--resume-position', type=float, default=None,
                        help="Pretend the user stopped watching at this position")
    parser.add_argument('--start-over', action='store_true',
                        help="Answer the resume prompt with 'start from the beginning'")


def run(args: argparse.Namespace) -> Tuple[PlaybackState, Dict[str, float], int]:
    media = prepare_media(
        segment_size_file=args.segment_size_file,
        bitrate_kbps=args.bitrate_kbps,
        total_segments=args.total_segments,
        segment_duration=args.segment_duration,
    )
    session_options = {
        'preload_buffer_size': args.preload_buffer_size,
        'min_request_interval': args.min_request_interval,
        'save_interval': args.save_interval,
        **args.session_options,
    }
    session, engine, progress = prepare_simulation(
        series_id=args.series_id,
        episode_number=args.episode,
        media=media,
        user_id=args.user_id or None,
        trace_folder=args.trace_folder,
        bandwidth_mbps=None if args.trace_folder else args.bandwidth_mbps,
        max_buffer=args.max_buffer,
        resume_position=args.resume_position,
        session_options=session_options,
    )

    state = asyncio.run(simulating(
        session=session,
        engine=engine,
        log_file_path=args.log_file,
        tick=args.tick,
        resume=not args.start_over,
    ))
    return state, calculate_simulation_statistics(args.log_file), len(progress.saved)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Simulate a vodstream playback session')
    add_session_args(parser)
    add_simulation_args(parser)
    add_logging_arguments(parser)
    args = parser.parse_args(argv)
    args.session_options = parse_options(args.session_options)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    state, stats, saves = run(args)

    print("\n" + "=" * 50)
    print("Simulation Statistics")
    print("=" * 50)
    print(f"Final state:       {state.value}")
    print(f"Checkpoint saves:  {saves}")
    if stats:
        print(f"Session length:    {stats['session_seconds']:.2f} s")
        print(f"Total rebuffer:    {stats['rebuffer_total']:.2f} s")
        print(f"Health mean:       {stats['health_mean']:.2f} %")
        print(f"Health 5%:         {stats['health_5per']:.2f} %")
        print(f"Health min:        {stats['health_min']:.2f} %")
    print("=" * 50)
    return state


if __name__ == '__main__':
    main()
