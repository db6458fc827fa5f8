"""Abstract media engine interface.

The playback session controller never touches a concrete player. It drives
an :class:`AbstractMediaEngine` and reacts to the events the engine emits on
its own clock through :class:`MediaEngineListener` callbacks.
"""

from abc import ABC, abstractmethod
from typing import List, Tuple


BufferedRanges = List[Tuple[float, float]]


class MediaEngineListener:
    """Receiver of media engine events. All callbacks default to no-ops."""

    def on_loaded_metadata(self, duration: float) -> None:
        """Source metadata is known; ``duration`` is in seconds."""

    def on_time_update(self, current_time: float, duration: float) -> None:
        """Playback clock moved (or a seek completed)."""

    def on_progress(self) -> None:
        """More of the media got buffered."""

    def on_play(self) -> None:
        pass

    def on_pause(self) -> None:
        pass

    def on_ended(self) -> None:
        """Playback reached the natural end of the media."""

    def on_error(self, error: Exception) -> None:
        """The source or its metadata failed to load."""


class AbstractMediaEngine(ABC):
    """Minimal playback capability any concrete backend has to provide.

    Volume, mute and playback rate are plain state on the engine; backends
    that need to push them somewhere override the setters.
    """

    def __init__(self):
        self._listeners: List[MediaEngineListener] = []
        self._volume = 1.0
        self._muted = False
        self._playback_rate = 1.0

    # ==================== Listener management ====================

    def add_listener(self, listener: MediaEngineListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: MediaEngineListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: str, *args) -> None:
        """Dispatch an event to every registered listener, in registration order."""
        for listener in list(self._listeners):
            getattr(listener, event)(*args)

    # ==================== Transport ====================

    @abstractmethod
    def load(self, url: str) -> None:
        """Start loading a source. Completion is signalled by ``on_loaded_metadata``
        or ``on_error``."""
        ...

    @abstractmethod
    def play(self) -> None:
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def seek(self, time_seconds: float) -> None:
        ...

    @abstractmethod
    def request_fullscreen(self) -> None:
        ...

    # ==================== Clock and buffer ====================

    @property
    @abstractmethod
    def current_time(self) -> float:
        """Playhead position in seconds; 0 when nothing is loaded."""
        ...

    @property
    @abstractmethod
    def duration(self) -> float:
        """Media duration in seconds; 0 while unknown."""
        ...

    @property
    @abstractmethod
    def buffered(self) -> BufferedRanges:
        """Buffered ``(start, end)`` ranges in non-decreasing order."""
        ...

    @property
    @abstractmethod
    def paused(self) -> bool:
        ...

    # ==================== Output state ====================

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = value

    @property
    def muted(self) -> bool:
        return self._muted

    @muted.setter
    def muted(self, value: bool) -> None:
        self._muted = value

    @property
    def playback_rate(self) -> float:
        return self._playback_rate

    @playback_rate.setter
    def playback_rate(self, value: float) -> None:
        self._playback_rate = value
