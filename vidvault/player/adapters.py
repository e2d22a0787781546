# vidvault/player/adapters.py
"""
Backend adapters behind the playback controller.

Both adapters expose the same surface (``play``, ``pause``, ``seek_to``,
``get_current_time``, ``get_duration``, ``get_state``, ``dispose``) and report
back to a listener with the load generation they were created for, so the
controller can drop callbacks that belong to a previous content item.

Listener protocol (implemented by ``PlaybackController``)::

    adapter_ready(generation, duration)
    adapter_tick(generation, position, duration)
    adapter_duration(generation, duration)
    adapter_state_changed(generation, state)
    adapter_ended(generation)
    adapter_failed(generation, error)
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from enum import Enum, IntEnum

from .errors import AdapterInitError, PlaybackCommandError
from .sources import EmbeddedStream, DirectFile

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 1.0


class AdapterState(Enum):
    UNSTARTED = 'unstarted'
    BUFFERING = 'buffering'
    PLAYING = 'playing'
    PAUSED = 'paused'
    ENDED = 'ended'


class EmbeddedPlayerState(IntEnum):
    """State codes reported by the embedded (YouTube iframe) player API"""
    UNSTARTED = -1
    ENDED = 0
    PLAYING = 1
    PAUSED = 2
    BUFFERING = 3
    CUED = 5


_EMBEDDED_STATES = {
    EmbeddedPlayerState.UNSTARTED: AdapterState.UNSTARTED,
    EmbeddedPlayerState.CUED: AdapterState.UNSTARTED,
    EmbeddedPlayerState.ENDED: AdapterState.ENDED,
    EmbeddedPlayerState.PLAYING: AdapterState.PLAYING,
    EmbeddedPlayerState.PAUSED: AdapterState.PAUSED,
    EmbeddedPlayerState.BUFFERING: AdapterState.BUFFERING,
}


class AsyncioTimerScheduler:
    """Timer scheduler backed by the running asyncio loop"""

    def call_later(self, delay, callback):
        return asyncio.get_running_loop().call_later(delay, callback)


def _seconds(value):
    """Normalize a player-reported time (None/NaN/inf become 0)"""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value) or math.isinf(value) or value < 0:
        return 0.0
    return value


class PlayerAdapter(ABC):
    """Common control surface for one content item"""

    # Whether a seek leaves a playing player playing
    seek_preserves_playback = True
    # Whether a seek may start a paused player
    seek_may_autoplay = False

    def __init__(self, generation, listener):
        self.generation = generation
        self.listener = listener
        self.disposed = False

    @property
    @abstractmethod
    def is_ready(self):
        ...

    @abstractmethod
    def start(self):
        """Create the underlying player; raises AdapterInitError"""

    @abstractmethod
    def play(self):
        ...

    @abstractmethod
    def pause(self):
        ...

    @abstractmethod
    def seek_to(self, seconds):
        ...

    @abstractmethod
    def get_current_time(self):
        ...

    @abstractmethod
    def get_duration(self):
        ...

    @abstractmethod
    def get_state(self):
        ...

    @abstractmethod
    def dispose(self):
        """Release timers, listeners and the player; idempotent"""

    def _emit(self, name, *args):
        if self.disposed:
            return
        getattr(self.listener, name)(self.generation, *args)


class EmbeddedStreamAdapter(PlayerAdapter):
    """
    Adapter for an embedded streaming-platform player.

    ``player_factory(video_id, on_ready, on_state_change, on_error)`` must
    create the player and return it immediately; readiness is signalled later
    through ``on_ready``. Commands issued before that are queued and replayed
    in order. Position is polled every ``poll_interval`` seconds through
    ``scheduler.call_later``.
    """

    seek_preserves_playback = False
    seek_may_autoplay = True

    def __init__(self, source, generation, listener, player_factory, scheduler,
                 poll_interval=POLL_INTERVAL_SECONDS):
        super().__init__(generation, listener)
        self.source = source
        self.player_factory = player_factory
        self.scheduler = scheduler
        self.poll_interval = poll_interval
        self.player = None
        self._ready = False
        self._ready_before_start = False
        self._pending = []
        self._timer = None

    @property
    def is_ready(self):
        return self._ready and not self.disposed

    def start(self):
        try:
            self.player = self.player_factory(
                self.source.video_id,
                on_ready=self._handle_ready,
                on_state_change=self._handle_state_change,
                on_error=self._handle_error,
            )
        except Exception as e:
            raise AdapterInitError(f"Embedded player failed to load: {e}") from e
        if self._ready_before_start:
            self._handle_ready()

    def _handle_ready(self, *args):
        if self.disposed:
            return
        if self.player is None:
            # API already loaded: readiness fired inside the factory call
            self._ready_before_start = True
            return
        self._ready = True
        pending, self._pending = self._pending, []
        for name, call_args in pending:
            try:
                getattr(self.player, name)(*call_args)
            except Exception as e:
                logger.error(f"Queued {name} failed after ready: {e}")
        self._emit('adapter_ready', self.get_duration())
        self._schedule_poll()

    def _handle_state_change(self, code, *args):
        if self.disposed:
            return
        try:
            state = _EMBEDDED_STATES[EmbeddedPlayerState(code)]
        except (ValueError, KeyError):
            logger.debug(f"Ignoring embedded player state {code!r}")
            return
        if state is AdapterState.ENDED:
            self._emit('adapter_ended')
        else:
            self._emit('adapter_state_changed', state)

    def _handle_error(self, error, *args):
        if self.disposed:
            return
        if not self._ready:
            self._emit('adapter_failed', AdapterInitError(f"Embedded player error: {error}"))
        else:
            self._emit('adapter_failed', PlaybackCommandError(f"Embedded player error: {error}"))

    def _schedule_poll(self):
        if self.disposed:
            return
        self._timer = self.scheduler.call_later(self.poll_interval, self._poll)

    def _poll(self):
        if self.disposed:
            return
        try:
            duration = self.get_duration()
            if duration:
                self._emit('adapter_tick', self.get_current_time(), duration)
        except Exception as e:
            logger.error(f"Embedded progress polling error: {e}")
        self._schedule_poll()

    def _command(self, name, *args):
        if self.disposed:
            raise PlaybackCommandError(f"{name} on a disposed player")
        if not self._ready:
            self._pending.append((name, args))
            return
        try:
            getattr(self.player, name)(*args)
        except Exception as e:
            raise PlaybackCommandError(f"Embedded {name} failed: {e}") from e

    def play(self):
        self._command('play_video')

    def pause(self):
        self._command('pause_video')

    def seek_to(self, seconds):
        self._command('seek_to', seconds, True)

    def get_current_time(self):
        if not self.is_ready:
            return 0.0
        return _seconds(self.player.get_current_time())

    def get_duration(self):
        if not self.is_ready:
            return 0.0
        return _seconds(self.player.get_duration())

    def get_state(self):
        if not self.is_ready:
            return AdapterState.UNSTARTED
        try:
            return _EMBEDDED_STATES[EmbeddedPlayerState(self.player.get_player_state())]
        except (ValueError, KeyError):
            return AdapterState.UNSTARTED

    def dispose(self):
        if self.disposed:
            return
        self.disposed = True
        self._pending = []
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.player is not None:
            try:
                self.player.destroy()
            except Exception as e:
                logger.error(f"Embedded player destroy error: {e}")
            self.player = None


class DirectFileAdapter(PlayerAdapter):
    """
    Adapter for a directly addressable media file.

    ``media_factory(url)`` returns a media element exposing ``current_time``
    (settable), ``duration``, ``paused``, ``play()``, ``pause()`` and
    ``add_event_listener`` / ``remove_event_listener``. Construction is
    synchronous, so the adapter is ready as soon as ``start`` returns.
    """

    EVENTS = ('timeupdate', 'loadedmetadata', 'ended', 'play', 'pause')

    def __init__(self, source, generation, listener, media_factory):
        super().__init__(generation, listener)
        self.source = source
        self.media_factory = media_factory
        self.element = None
        self._handlers = {}

    @property
    def is_ready(self):
        return self.element is not None and not self.disposed

    def start(self):
        try:
            self.element = self.media_factory(self.source.url)
        except Exception as e:
            raise AdapterInitError(f"Media element failed to load: {e}") from e

        self._handlers = {
            'timeupdate': self._on_time_update,
            'loadedmetadata': self._on_loaded_metadata,
            'ended': self._on_ended,
            'play': self._on_play,
            'pause': self._on_pause,
        }
        for event, handler in self._handlers.items():
            self.element.add_event_listener(event, handler)
        self._emit('adapter_ready', self.get_duration())

    def _on_time_update(self, *args):
        if self.disposed:
            return
        duration = self.get_duration()
        if duration:
            self._emit('adapter_tick', self.get_current_time(), duration)

    def _on_loaded_metadata(self, *args):
        self._emit('adapter_duration', self.get_duration())

    def _on_ended(self, *args):
        self._emit('adapter_ended')

    def _on_play(self, *args):
        self._emit('adapter_state_changed', AdapterState.PLAYING)

    def _on_pause(self, *args):
        # native media elements fire "pause" right before "ended"
        if self.element is not None and self._ended():
            return
        self._emit('adapter_state_changed', AdapterState.PAUSED)

    def _ended(self):
        return bool(getattr(self.element, 'ended', False))

    def _require_element(self, name):
        if not self.is_ready:
            raise PlaybackCommandError(f"{name} on a disposed player")
        return self.element

    def play(self):
        element = self._require_element('play')
        try:
            element.play()
        except Exception as e:
            raise PlaybackCommandError(f"Media play failed: {e}") from e

    def pause(self):
        element = self._require_element('pause')
        try:
            element.pause()
        except Exception as e:
            raise PlaybackCommandError(f"Media pause failed: {e}") from e

    def seek_to(self, seconds):
        element = self._require_element('seek')
        try:
            element.current_time = seconds
        except Exception as e:
            raise PlaybackCommandError(f"Media seek failed: {e}") from e

    def get_current_time(self):
        if not self.is_ready:
            return 0.0
        return _seconds(self.element.current_time)

    def get_duration(self):
        if not self.is_ready:
            return 0.0
        return _seconds(self.element.duration)

    def get_state(self):
        if not self.is_ready:
            return AdapterState.UNSTARTED
        if self._ended():
            return AdapterState.ENDED
        return AdapterState.PAUSED if self.element.paused else AdapterState.PLAYING

    def dispose(self):
        if self.disposed:
            return
        self.disposed = True
        if self.element is not None:
            for event, handler in self._handlers.items():
                try:
                    self.element.remove_event_listener(event, handler)
                except Exception as e:
                    logger.error(f"Media listener removal error ({event}): {e}")
            try:
                self.element.pause()
            except Exception:
                logger.debug("Media element pause on dispose failed", exc_info=True)
        self._handlers = {}
        self.element = None


class AdapterFactory:
    """Builds the adapter matching a playback source variant"""

    def __init__(self, player_factory=None, media_factory=None, scheduler=None,
                 poll_interval=POLL_INTERVAL_SECONDS):
        self.player_factory = player_factory
        self.media_factory = media_factory
        self.scheduler = scheduler or AsyncioTimerScheduler()
        self.poll_interval = poll_interval

    def create(self, source, generation, listener):
        if isinstance(source, EmbeddedStream):
            if self.player_factory is None:
                raise AdapterInitError("No embedded player API available")
            return EmbeddedStreamAdapter(source, generation, listener, self.player_factory,
                                         self.scheduler, self.poll_interval)
        if isinstance(source, DirectFile):
            if self.media_factory is None:
                raise AdapterInitError("No media element available")
            return DirectFileAdapter(source, generation, listener, self.media_factory)
        raise AdapterInitError(f"Unsupported playback source: {source!r}")
