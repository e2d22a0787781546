# vidvault/player/progress.py
"""
Progress persistence collaborators for the playback controller.

A store is anything with ``read(content_id) -> int | None`` and
``write(content_id, percent)``. The controller reads once per ``load()`` and
writes on every position update until the item completes.
"""

import logging

import requests

logger = logging.getLogger(__name__)


class ProgressStore:
    """Wraps a plain read/write function pair"""

    def __init__(self, read, write):
        self._read = read
        self._write = write

    def read(self, content_id):
        return self._read(content_id)

    def write(self, content_id, percent):
        self._write(content_id, percent)


class InMemoryProgressStore:

    def __init__(self, initial=None):
        self.records = dict(initial or {})

    def read(self, content_id):
        return self.records.get(content_id)

    def write(self, content_id, percent):
        self.records[content_id] = int(min(max(percent, 0), 100))


class ApiProgressStore:
    """
    Store backed by the ``/api/progress/<video_id>`` routes.

    Writes of an unchanged percent are skipped, so a one-second poll does not
    turn into one request per second while the position stays on the same
    integer percent.
    """

    def __init__(self, base_url, email, session=None, timeout=10):
        self.base_url = base_url.rstrip('/')
        self.email = email
        self.session = session or requests.Session()
        self.timeout = timeout
        self._last_written = {}

    def _url(self, content_id):
        return f"{self.base_url}/api/progress/{content_id}"

    def read(self, content_id):
        response = self.session.get(self._url(content_id), params={'email': self.email},
                                    timeout=self.timeout)
        response.raise_for_status()
        percent = int(response.json().get('percent', 0))
        self._last_written[content_id] = percent
        return percent

    def write(self, content_id, percent):
        percent = int(min(max(percent, 0), 100))
        if self._last_written.get(content_id) == percent:
            return
        response = self.session.put(self._url(content_id),
                                    json={'email': self.email, 'percent': percent},
                                    timeout=self.timeout)
        response.raise_for_status()
        self._last_written[content_id] = percent
        logger.debug(f"Progress saved: {content_id} -> {percent}%")
