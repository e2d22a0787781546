# vidvault/player/sources.py
"""
Playback source detection.

A content item's URL is classified once: YouTube watch, embed, short and
``youtu.be`` links become an :class:`EmbeddedStream` carrying the 11 character
video id; anything else is served as a :class:`DirectFile`.
"""

import logging
import re
from dataclasses import dataclass

from .errors import SourceParseError

logger = logging.getLogger(__name__)

YOUTUBE_PATTERN = re.compile(
    r'(?:youtube\.com/(?:[^/\n\s]+/\S+/|(?:v|e(?:mbed)?|shorts)/|\S*?[?&]v=)|youtu\.be/)'
    r'([a-zA-Z0-9_-]{11})'
)
DIRECT_FILE_PATTERN = re.compile(r'^(?:https?://|/|blob:|data:video/)', re.IGNORECASE)


@dataclass(frozen=True)
class EmbeddedStream:
    video_id: str

    kind = 'embedded'

    def describe(self):
        return {'kind': self.kind, 'videoId': self.video_id}


@dataclass(frozen=True)
class DirectFile:
    url: str

    kind = 'direct'

    def describe(self):
        return {'kind': self.kind, 'url': self.url}


def classify_url(url):
    """Strict classification; raises SourceParseError for unknown URLs"""
    url = (url or '').strip()
    match = YOUTUBE_PATTERN.search(url)
    if match:
        return EmbeddedStream(match.group(1))
    if DIRECT_FILE_PATTERN.match(url):
        return DirectFile(url)
    raise SourceParseError(f"Unrecognized video URL: {url!r}")


def parse_source(url):
    """Classify a URL, treating anything unrecognized as a direct file"""
    try:
        return classify_url(url)
    except SourceParseError as e:
        logger.warning(f"{e}; falling back to direct file playback")
        return DirectFile((url or '').strip())
