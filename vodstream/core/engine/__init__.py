"""Media engine abstraction and the trace-driven simulated engine."""

from .abc import AbstractMediaEngine, BufferedRanges, MediaEngineListener
from .simulated import SimulatedMediaEngine, StepResult, MAX_BUFFER

__all__ = [
    'AbstractMediaEngine',
    'BufferedRanges',
    'MediaEngineListener',
    'SimulatedMediaEngine',
    'StepResult',
    'MAX_BUFFER',
]
