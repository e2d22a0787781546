import uuid
from unittest.mock import MagicMock

import pytest
from firebase_admin import firestore

from vidvault import database, storage
from vidvault.app import create_app
from vidvault.auth import create_jwt_for_admin


# ------------------------------------------------------------------ Firestore

class FakeSnapshot:
    def __init__(self, ref, data):
        self.reference = ref
        self.id = ref.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, db, path, doc_id):
        self._db = db
        self._path = path
        self.id = doc_id

    @property
    def _store(self):
        return self._db.data.setdefault(self._path, {})

    def get(self):
        return FakeSnapshot(self, self._store.get(self.id))

    def set(self, data, merge=False):
        if merge and self.id in self._store:
            self._store[self.id].update(data)
        else:
            self._store[self.id] = dict(data)

    def update(self, data):
        if self.id not in self._store:
            raise KeyError(f"No document to update: {self._path}/{self.id}")
        self._store[self.id].update(data)

    def delete(self):
        self._store.pop(self.id, None)

    def collection(self, name):
        return FakeCollection(self._db, f"{self._path}/{self.id}/{name}")


class FakeQuery:
    def __init__(self, collection, filters=(), order=None, limit=None):
        self._collection = collection
        self._filters = list(filters)
        self._order = order
        self._limit = limit

    def where(self, field, op, value):
        return FakeQuery(self._collection, self._filters + [(field, op, value)], self._order, self._limit)

    def order_by(self, field, direction=firestore.Query.ASCENDING):
        return FakeQuery(self._collection, self._filters, (field, direction), self._limit)

    def limit(self, count):
        return FakeQuery(self._collection, self._filters, self._order, count)

    def _matches(self, data):
        for field, op, value in self._filters:
            if field not in data:
                return False
            current = data[field]
            if op == '==' and current != value:
                return False
            if op == '!=' and current == value:
                return False
            if op == '>=' and not current >= value:
                return False
            if op == '>' and not current > value:
                return False
            if op == '<=' and not current <= value:
                return False
            if op == '<' and not current < value:
                return False
        return True

    def stream(self):
        store = self._collection._store
        items = [(doc_id, data) for doc_id, data in store.items() if self._matches(data)]
        if self._order:
            field, direction = self._order
            items = [item for item in items if field in item[1]]
            items.sort(key=lambda item: item[1][field],
                       reverse=direction == firestore.Query.DESCENDING)
        if self._limit is not None:
            items = items[:self._limit]
        return iter([FakeSnapshot(self._collection.document(doc_id), data) for doc_id, data in items])

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):
    def __init__(self, db, path):
        self._db = db
        self._path = path
        super().__init__(self)

    @property
    def _store(self):
        return self._db.data.setdefault(self._path, {})

    def document(self, doc_id=None):
        return FakeDocumentRef(self._db, self._path, doc_id or uuid.uuid4().hex[:20])

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return None, ref


class FakeFirestore:
    """In-memory stand-in for the Firestore client"""

    def __init__(self):
        self.data = {}

    def collection(self, name):
        return FakeCollection(self, name)

    def docs(self, path):
        return self.data.get(path, {})


@pytest.fixture
def fake_db():
    db = FakeFirestore()
    database.set_db(db)
    yield db
    database.set_db(None)


@pytest.fixture
def fake_s3():
    s3 = MagicMock()
    s3.generate_presigned_url.side_effect = lambda ClientMethod, Params, ExpiresIn: (
        f"https://s3.example.com/vidvault/{Params['Key']}"
        f"?X-Amz-Date=20991231T000000Z&X-Amz-Expires={ExpiresIn}"
    )
    s3.generate_presigned_post.return_value = {
        'url': 'https://s3.example.com/vidvault',
        'fields': {'key': 'k', 'policy': 'p'}
    }
    storage.set_s3(s3)
    yield s3
    storage.set_s3(None)


@pytest.fixture
def app(fake_db, fake_s3):
    return create_app({'TESTING': True})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers():
    return {'Authorization': f'Bearer {create_jwt_for_admin()}'}


# --------------------------------------------------------------------- player

class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual timer scheduler: nothing runs until ``advance()``"""

    def __init__(self):
        self.timers = []

    def call_later(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled]

    def advance(self):
        """Fire every timer that is currently pending, once"""
        due, self.timers = self.pending, []
        for timer in due:
            timer.callback()


class FakeEmbeddedPlayer:
    def __init__(self, video_id, on_ready, on_state_change, on_error):
        self.video_id = video_id
        self.on_ready = on_ready
        self.on_state_change = on_state_change
        self.on_error = on_error
        self.current_time = 0.0
        self.duration = 0.0
        self.state = -1
        self.calls = []
        self.destroyed = False
        self.fail_commands = False

    def _record(self, name, *args):
        if self.fail_commands:
            raise RuntimeError(f"{name} rejected")
        self.calls.append((name,) + args)

    def play_video(self):
        self._record('play_video')
        self.state = 1

    def pause_video(self):
        self._record('pause_video')
        self.state = 2

    def seek_to(self, seconds, allow_seek_ahead):
        self._record('seek_to', seconds, allow_seek_ahead)
        self.current_time = seconds

    def get_current_time(self):
        return self.current_time

    def get_duration(self):
        return self.duration

    def get_player_state(self):
        return self.state

    def destroy(self):
        self.destroyed = True

    # helpers driving the callbacks the real API would fire
    def become_ready(self, duration):
        self.duration = duration
        self.on_ready()

    def change_state(self, code):
        self.state = code
        self.on_state_change(code)


class FakeEmbeddedApi:
    def __init__(self):
        self.players = []
        self.fail = False

    def __call__(self, video_id, on_ready, on_state_change, on_error):
        if self.fail:
            raise RuntimeError("iframe API failed to load")
        player = FakeEmbeddedPlayer(video_id, on_ready, on_state_change, on_error)
        self.players.append(player)
        return player

    @property
    def last(self):
        return self.players[-1]


class FakeMediaElement:
    def __init__(self, url, duration=0.0):
        self.url = url
        self.current_time = 0.0
        self.duration = duration
        self.paused = True
        self.ended = False
        self.listeners = {}
        self.fail_commands = False

    def add_event_listener(self, event, handler):
        self.listeners.setdefault(event, []).append(handler)

    def remove_event_listener(self, event, handler):
        self.listeners.get(event, []).remove(handler)

    def dispatch(self, event):
        for handler in list(self.listeners.get(event, [])):
            handler()

    def play(self):
        if self.fail_commands:
            raise RuntimeError("play() rejected")
        self.paused = False
        self.ended = False
        self.dispatch('play')

    def pause(self):
        if self.fail_commands:
            raise RuntimeError("pause() rejected")
        self.paused = True
        self.dispatch('pause')

    # helpers
    def tick(self, position):
        self.current_time = position
        self.dispatch('timeupdate')

    def finish(self):
        self.current_time = self.duration
        self.paused = True
        self.ended = True
        self.dispatch('pause')
        self.dispatch('ended')


class FakeMediaFactory:
    def __init__(self, duration=120.0):
        self.duration = duration
        self.elements = []

    def __call__(self, url):
        element = FakeMediaElement(url, self.duration)
        self.elements.append(element)
        return element

    @property
    def last(self):
        return self.elements[-1]


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def embedded_api():
    return FakeEmbeddedApi()


@pytest.fixture
def media_factory():
    return FakeMediaFactory()
