"""Playback session controller and its public state types."""

from .controller import (
    PlaybackSessionController,
    PLAYBACK_RATES,
    SAVE_INTERVAL,
    SEEK_STEP,
    VOLUME_STEP,
)
from .state import PlaybackSnapshot, PlaybackState, SessionListener, format_time

__all__ = [
    'PlaybackSessionController',
    'PLAYBACK_RATES',
    'SAVE_INTERVAL',
    'SEEK_STEP',
    'VOLUME_STEP',
    'PlaybackSnapshot',
    'PlaybackState',
    'SessionListener',
    'format_time',
]
