"""vodstream core modules."""

from . import engine
from . import segment
from . import trace
from .combinations import create_simulated_engine

__all__ = [
    # Submodules
    'engine',
    'segment',
    'trace',
    # Factory functions
    'create_simulated_engine',
]
