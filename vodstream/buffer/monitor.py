"""Buffer health monitor.

Turns the media engine's buffered time ranges into a single health signal.
The score is advisory: it colours the UI and is not used to pick a quality.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple


HEALTHY_LOOKAHEAD = 30.0  # sec of buffer ahead of the playhead that counts as 100%
HEALTHY_THRESHOLD = 70.0
CRITICAL_THRESHOLD = 30.0

STATUS_HEALTHY = 'healthy'
STATUS_CAUTION = 'caution'
STATUS_CRITICAL = 'critical'


def classify(health_percent: float) -> str:
    """UI band of a health score: >70 healthy, 30-70 caution, <30 critical."""
    if health_percent > HEALTHY_THRESHOLD:
        return STATUS_HEALTHY
    if health_percent >= CRITICAL_THRESHOLD:
        return STATUS_CAUTION
    return STATUS_CRITICAL


@dataclass(frozen=True)
class BufferHealthSample:
    """Buffer state derived at one playback tick. Never persisted."""
    buffered_through_seconds: float
    buffered_percent_of_duration: float
    buffer_ahead_of_playhead_seconds: float
    health_percent: float

    @property
    def status(self) -> str:
        return classify(self.health_percent)


EMPTY_SAMPLE = BufferHealthSample(0.0, 0.0, 0.0, 0.0)


class BufferHealthMonitor:
    """Stateless sampler; one instance per session for its configuration."""

    def __init__(self, healthy_lookahead: float = HEALTHY_LOOKAHEAD):
        if healthy_lookahead <= 0:
            raise ValueError(f"healthy_lookahead must be positive, got {healthy_lookahead}")
        self.healthy_lookahead = healthy_lookahead

    def sample(
        self,
        buffered_ranges: Sequence[Tuple[float, float]],
        current_time: float,
        total_duration: float,
    ) -> BufferHealthSample:
        """Compute a sample from the end of the last buffered range.

        Ranges are assumed to come in non-decreasing order from the engine;
        no ranges means nothing is buffered.
        """
        buffered_end = buffered_ranges[-1][1] if buffered_ranges else 0.0

        if total_duration > 0:
            buffered_percent = min(max(buffered_end / total_duration * 100.0, 0.0), 100.0)
        else:
            buffered_percent = 0.0

        ahead = max(buffered_end - current_time, 0.0)
        health = min(ahead / self.healthy_lookahead * 100.0, 100.0)

        return BufferHealthSample(
            buffered_through_seconds=buffered_end,
            buffered_percent_of_duration=buffered_percent,
            buffer_ahead_of_playhead_seconds=ahead,
            health_percent=health,
        )
