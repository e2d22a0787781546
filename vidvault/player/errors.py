# vidvault/player/errors.py


class PlaybackError(Exception):
    """Base class for recoverable player errors"""


class AdapterInitError(PlaybackError):
    """The underlying player could not be created or failed to become ready"""


class PlaybackCommandError(PlaybackError):
    """A play, pause or seek command was rejected by the underlying player"""


class SourceParseError(PlaybackError, ValueError):
    """A URL matched neither the embedded-stream nor the direct-file pattern"""
