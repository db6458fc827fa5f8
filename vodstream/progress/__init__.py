"""Watch checkpoints, resume decisions and the local watch history."""

from .checkpoint import (
    COMPLETION_PERCENTAGE,
    RESUME_MIN_POSITION,
    RESUME_MAX_AGE,
    NO_PROMPT,
    ResumeDecision,
    WatchCheckpoint,
    decide_resume,
    parse_timestamp,
    watch_percentage,
)
from .history import WatchHistory, MAX_HISTORY_ENTRIES

__all__ = [
    'COMPLETION_PERCENTAGE',
    'RESUME_MIN_POSITION',
    'RESUME_MAX_AGE',
    'NO_PROMPT',
    'ResumeDecision',
    'WatchCheckpoint',
    'decide_resume',
    'parse_timestamp',
    'watch_percentage',
    'WatchHistory',
    'MAX_HISTORY_ENTRIES',
]
