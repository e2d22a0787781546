# vidvault/player/controller.py
"""
Playback controller.

One controller drives one media surface. It owns :class:`PlaybackState`,
talks to whichever adapter matches the loaded source, and reports progress,
near-completion, completion and non-fatal errors to the host through plain
callbacks.

Every ``load()`` bumps a generation counter. Adapters stamp their callbacks
with the generation they were created for; anything stamped with an older
generation is dropped, so ticks from a previous content item can never land
on the current one.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from .adapters import AdapterFactory, AdapterState
from .errors import AdapterInitError, PlaybackCommandError, PlaybackError
from .sources import parse_source

logger = logging.getLogger(__name__)

NEAR_COMPLETE_PERCENT = 90.0
COMPLETE_PERCENT = 100.0


class PlayerStatus(Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    READY = 'ready'
    PLAYING = 'playing'
    PAUSED = 'paused'
    COMPLETED = 'completed'


@dataclass
class PlaybackState:
    is_playing: bool = False
    position_seconds: float = 0.0
    duration_seconds: float = 0.0
    progress_percent: float = 0.0


def compute_percent(position, duration):
    if duration <= 0:
        return 0.0
    return min(max(position, 0.0), duration) * 100 / duration


def _noop(*args):
    pass


class PlaybackController:

    def __init__(self, adapters=None, on_progress=None, on_complete=None,
                 on_near_complete=None, on_error=None, progress_store=None):
        self.adapters = adapters or AdapterFactory()
        self.on_progress = on_progress or _noop
        self.on_complete = on_complete or _noop
        self.on_near_complete = on_near_complete or _noop
        self.on_error = on_error or _noop
        self.progress_store = progress_store

        self.state = PlaybackState()
        self.status = PlayerStatus.IDLE
        self.source = None
        self.content_id = None
        self.generation = 0
        self._adapter = None
        self._near_complete_fired = False
        self._completed = False
        self._pending_seek = None
        self._has_position = False

    # -- host API -----------------------------------------------------

    def load(self, source, content_id=None):
        """Switch to a new content item (a PlaybackSource or a URL)"""
        if isinstance(source, str):
            source = parse_source(source)

        self._release_adapter()
        self.generation += 1
        generation = self.generation

        self.source = source
        self.content_id = content_id
        self.state = PlaybackState()
        self._near_complete_fired = False
        self._completed = False
        self._pending_seek = None
        self._has_position = False
        self.status = PlayerStatus.LOADING
        self._restore_progress()

        try:
            self._adapter = self.adapters.create(source, generation, self)
            self._adapter.start()
        except AdapterInitError as e:
            self._fail_load(e)
            return False
        except Exception as e:
            self._fail_load(AdapterInitError(str(e)))
            return False

        logger.info(f"▶️ Loaded {source.kind} source (generation {generation})")
        return True

    def toggle_play_pause(self):
        adapter = self._adapter
        if adapter is None:
            self._report(PlaybackCommandError("No video loaded"))
            return False

        want_playing = not self.state.is_playing
        try:
            if want_playing:
                adapter.play()
            else:
                adapter.pause()
        except PlaybackError as e:
            self._report(e)
            return False

        self.state.is_playing = want_playing
        if self.status is not PlayerStatus.LOADING:
            self.status = PlayerStatus.PLAYING if want_playing else PlayerStatus.PAUSED
        return True

    def seek(self, fraction):
        """Seek to a fraction of the duration, keeping play/pause as it was"""
        adapter = self._adapter
        if adapter is None:
            self._report(PlaybackCommandError("No video loaded"))
            return False

        fraction = min(max(float(fraction), 0.0), 1.0)
        duration = self.state.duration_seconds or adapter.get_duration()
        if duration <= 0:
            # duration unknown until the player is ready
            self._pending_seek = fraction
            return True

        was_playing = self.state.is_playing
        target = fraction * duration
        try:
            adapter.seek_to(target)
            if was_playing and not adapter.seek_preserves_playback:
                adapter.play()
            elif not was_playing and adapter.seek_may_autoplay:
                adapter.pause()
        except PlaybackError as e:
            self._report(e)
            return False

        self.state.duration_seconds = duration
        self.state.position_seconds = target
        self._has_position = True
        self.state.progress_percent = compute_percent(target, duration)
        if self.status is PlayerStatus.COMPLETED and fraction < 1.0:
            self.status = PlayerStatus.PLAYING if was_playing else PlayerStatus.PAUSED
        return True

    def on_position_tick(self, position_seconds, duration_seconds=None):
        """Fold a position update from the active adapter into the state"""
        if self._adapter is None:
            return
        if duration_seconds:
            self.state.duration_seconds = duration_seconds
        duration = self.state.duration_seconds
        if duration <= 0:
            return

        position = min(max(position_seconds, 0.0), duration)
        self._has_position = True
        percent = compute_percent(position, duration)
        self.state.position_seconds = position
        self.state.progress_percent = percent

        self.on_progress(percent)
        if not self._completed:
            self._persist(percent)

        if percent >= NEAR_COMPLETE_PERCENT and not self._near_complete_fired:
            self._near_complete_fired = True
            self.on_near_complete()
        if percent >= COMPLETE_PERCENT:
            self._complete()

    def dispose(self):
        """Release the active adapter; safe to call any number of times"""
        if self._adapter is None and self.status is PlayerStatus.IDLE:
            return
        self._release_adapter()
        self.generation += 1
        self.status = PlayerStatus.IDLE
        self.state.is_playing = False

    # -- adapter listener ---------------------------------------------

    def _is_current(self, generation):
        return self._adapter is not None and generation == self.generation

    def adapter_ready(self, generation, duration):
        if not self._is_current(generation):
            return
        if duration:
            self.state.duration_seconds = duration
        self.status = PlayerStatus.PLAYING if self.state.is_playing else PlayerStatus.READY
        if self._pending_seek is not None:
            fraction, self._pending_seek = self._pending_seek, None
            self.seek(fraction)

    def adapter_duration(self, generation, duration):
        if not self._is_current(generation):
            return
        if duration:
            self.state.duration_seconds = duration
            if self._has_position:
                self.state.progress_percent = compute_percent(self.state.position_seconds, duration)
            if self._pending_seek is not None:
                fraction, self._pending_seek = self._pending_seek, None
                self.seek(fraction)

    def adapter_tick(self, generation, position, duration=None):
        if not self._is_current(generation):
            return
        self.on_position_tick(position, duration)

    def adapter_state_changed(self, generation, state):
        if not self._is_current(generation):
            return
        if state is AdapterState.PLAYING:
            self.state.is_playing = True
            self.status = PlayerStatus.PLAYING
        elif state is AdapterState.PAUSED:
            self.state.is_playing = False
            if self.status is not PlayerStatus.COMPLETED:
                self.status = PlayerStatus.PAUSED

    def adapter_ended(self, generation):
        if not self._is_current(generation):
            return
        if self.state.duration_seconds:
            self.state.position_seconds = self.state.duration_seconds
        self.state.progress_percent = COMPLETE_PERCENT
        self.on_progress(COMPLETE_PERCENT)
        self._complete(ended=True)

    def adapter_failed(self, generation, error):
        if not self._is_current(generation):
            return
        if isinstance(error, AdapterInitError):
            self._fail_load(error)
        else:
            self._report(error)

    # -- internals ----------------------------------------------------

    def _complete(self, ended=False):
        # after the first completion only a real "ended" moves the status
        if self._completed and not ended:
            return
        self.state.is_playing = False
        self.state.progress_percent = COMPLETE_PERCENT
        self.status = PlayerStatus.COMPLETED
        if self._completed:
            return
        self._completed = True
        self._near_complete_fired = True
        self._persist(COMPLETE_PERCENT)
        logger.info(f"✅ Playback completed ({self.content_id or 'anonymous'})")
        self.on_complete()

    def _restore_progress(self):
        if self.progress_store is None or self.content_id is None:
            return
        try:
            saved = self.progress_store.read(self.content_id)
            saved = float(saved) if saved is not None else 0.0
        except Exception as e:
            logger.warning(f"Saved progress unavailable for {self.content_id}: {e}")
            return
        if saved:
            self.state.progress_percent = float(min(max(saved, 0), 100))
            if saved >= NEAR_COMPLETE_PERCENT:
                self._near_complete_fired = True

    def _persist(self, percent):
        if self.progress_store is None or self.content_id is None:
            return
        try:
            self.progress_store.write(self.content_id, int(round(percent)))
        except Exception as e:
            logger.error(f"Saving progress failed for {self.content_id}: {e}")

    def _release_adapter(self):
        adapter, self._adapter = self._adapter, None
        if adapter is not None:
            try:
                adapter.dispose()
            except Exception as e:
                logger.error(f"Adapter dispose error: {e}")

    def _fail_load(self, error):
        self._release_adapter()
        self.source = None
        self.status = PlayerStatus.IDLE
        self.state = PlaybackState()
        self._report(error)

    def _report(self, error):
        logger.warning(f"Playback error: {error}")
        self.on_error(str(error))
