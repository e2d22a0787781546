# vidvault/database.py

import logging

import firebase_admin
from firebase_admin import credentials, firestore

from .config import firebase_credentials, DEFAULT_SETTINGS
from .utils import utc_now_iso

logger = logging.getLogger(__name__)

REGISTRATIONS = 'registrations'
MESSAGES = 'messages'
VIDEOS = 'videos'
SETTINGS = 'settings'
PROGRESS = 'progress'
UPLOAD_SESSIONS = 'upload_sessions'

SETTINGS_DOC_ID = 'site'

_db = None


def init_firebase():
    """Initialize the Firebase Admin SDK once per process"""
    if not firebase_admin._apps:
        creds = firebase_credentials()
        if creds:
            firebase_admin.initialize_app(credentials.Certificate(creds))
        else:
            # Application default credentials (GCP runtime / emulator)
            firebase_admin.initialize_app()
        logger.info("✅ Firebase initialized")


def get_db():
    """Firestore client, created on first use"""
    global _db
    if _db is None:
        init_firebase()
        _db = firestore.client()
    return _db


def set_db(client):
    """Swap the Firestore client (tests, emulators)"""
    global _db
    _db = client


def doc_to_dict(doc):
    data = doc.to_dict() or {}
    data['_id'] = doc.id
    return data


def list_documents(collection, order_by='createdAt', descending=True, limit=None):
    """Documents of a collection, newest first by default"""
    query = get_db().collection(collection)
    if order_by:
        direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
        query = query.order_by(order_by, direction=direction)
    if limit:
        query = query.limit(limit)
    return [doc_to_dict(doc) for doc in query.stream()]


def get_document(collection, doc_id):
    doc = get_db().collection(collection).document(doc_id).get()
    return doc_to_dict(doc) if doc.exists else None


def create_document(collection, data):
    """Insert a document with an auto id and return the id"""
    _, ref = get_db().collection(collection).add(data)
    return ref.id


def update_document(collection, doc_id, data):
    """Update an existing document; False when it does not exist"""
    ref = get_db().collection(collection).document(doc_id)
    if not ref.get().exists:
        return False
    ref.update(data)
    return True


def delete_document(collection, doc_id):
    """Delete a document; False when it does not exist"""
    ref = get_db().collection(collection).document(doc_id)
    if not ref.get().exists:
        return False
    ref.delete()
    return True


def find_one(collection, field, value):
    docs = get_db().collection(collection).where(field, '==', value).limit(1).stream()
    for doc in docs:
        return doc_to_dict(doc)
    return None


def count_documents(collection, field=None, value=None, op='=='):
    query = get_db().collection(collection)
    if field is not None:
        query = query.where(field, op, value)
    return len(list(query.stream()))


def get_settings_document():
    doc = get_db().collection(SETTINGS).document(SETTINGS_DOC_ID).get()
    return doc.to_dict() if doc.exists else None


def get_site_settings():
    """Site settings with defaults filled in for missing keys"""
    settings = dict(DEFAULT_SETTINGS)
    settings.update(get_settings_document() or {})
    return settings


def save_settings_document(data):
    """Upsert the single site settings document"""
    ref = get_db().collection(SETTINGS).document(SETTINGS_DOC_ID)
    ref.set(data, merge=True)
    return ref.get().to_dict()


def _progress_ref(email, video_id):
    return get_db().collection(PROGRESS).document(email) \
                   .collection('videos').document(video_id)


def get_progress(email, video_id):
    doc = _progress_ref(email, video_id).get()
    return doc.to_dict() if doc.exists else None


def save_progress(email, video_id, percent):
    data = {
        'videoId': video_id,
        'percent': percent,
        'completed': percent >= 100,
        'updatedAt': utc_now_iso()
    }
    _progress_ref(email, video_id).set(data, merge=True)
    return data
