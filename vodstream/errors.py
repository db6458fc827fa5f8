"""Exception hierarchy of the playback client."""


class VodStreamError(Exception):
    """Base class for all errors raised by this package."""


class VideoNotFoundError(VodStreamError):
    """No completed video is attached to the requested episode."""

    def __init__(self, series_id: str, episode_number: int):
        super().__init__(f"No completed video for series {series_id!r} episode {episode_number}")
        self.series_id = series_id
        self.episode_number = episode_number


class GatewayError(VodStreamError):
    """A collaborator could not be reached or answered with garbage."""


class MediaLoadError(VodStreamError):
    """The media engine failed to load a source or its metadata."""
