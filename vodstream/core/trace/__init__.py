"""Network trace loading and simulation module."""

from .data import TraceData, constant_trace
from .loader import load_trace
from .abc import AbstractTraceSimulator, TraceProgress
from .simulator import TraceSimulator

__all__ = [
    'TraceData',
    'constant_trace',
    'load_trace',
    'TraceProgress',
    'AbstractTraceSimulator',
    'TraceSimulator',
]
