# vidvault/video_handler.py
import logging
import mimetypes
import re
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

from moviepy.video.io.VideoFileClip import VideoFileClip

from .config import (
    ALLOWED_VIDEO_EXTENSIONS, ALLOWED_IMAGE_EXTENSIONS, UPLOAD_FOLDERS, UPLOAD_AUTH_EXPIRES
)
from .database import get_db, UPLOAD_SESSIONS
from .storage import upload_to_s3, generate_presigned_url, generate_presigned_post
from .utils import format_duration, utc_now_iso

logger = logging.getLogger(__name__)


def get_video_duration(file_path):
    """Video length as ("m:ss", seconds); ("0:00", 0) when unreadable"""
    try:
        with VideoFileClip(str(file_path)) as clip:
            duration_sec = int(clip.duration)
            return format_duration(duration_sec), duration_sec
    except Exception as e:
        logger.warning(f"Could not read video duration: {e}")
        return "0:00", 0


def is_allowed_file(filename, allowed_extensions):
    return Path(filename).suffix.lower() in allowed_extensions


def allowed_extensions_for(upload_type):
    return ALLOWED_VIDEO_EXTENSIONS if upload_type == 'video' else ALLOWED_IMAGE_EXTENSIONS


def build_object_key(file_name, upload_type):
    """Storage key under videos/ or thumbnails/ with a unique prefix"""
    if upload_type not in UPLOAD_FOLDERS:
        raise ValueError(f"Unknown upload type: {upload_type}")
    path = Path(file_name)
    safe_name = re.sub(r'[^\w\-]', '_', path.stem) or 'file'
    return f"{UPLOAD_FOLDERS[upload_type]}/{uuid.uuid4().hex}_{safe_name}{path.suffix.lower()}"


def process_upload(file, file_name, upload_type):
    """Store an uploaded thumbnail or video and describe the stored object"""
    if upload_type not in UPLOAD_FOLDERS:
        raise ValueError(f"Unknown upload type: {upload_type}")

    allowed = allowed_extensions_for(upload_type)
    if not is_allowed_file(file_name, allowed):
        raise ValueError(f"Unsupported file type. Allowed: {', '.join(sorted(allowed))}")

    key = build_object_key(file_name, upload_type)
    ext = Path(file_name).suffix.lower()
    content_type = mimetypes.guess_type(file_name)[0]

    with tempfile.NamedTemporaryFile(suffix=ext, delete=False) as tmp_file:
        tmp_path = Path(tmp_file.name)
    try:
        file.save(str(tmp_path))

        result = {}
        if upload_type == 'video':
            duration, duration_sec = get_video_duration(tmp_path)
            logger.info(f"Video duration: {duration} ({duration_sec}s)")
            result.update({'duration': duration, 'durationSeconds': duration_sec})

        upload_to_s3(tmp_path, key, content_type)
    finally:
        tmp_path.unlink(missing_ok=True)

    logger.info(f"✅ Upload stored: {key}")
    result.update({
        'url': generate_presigned_url(key),
        'fileId': key,
        'key': key,
        'name': Path(key).name
    })
    return result


def create_upload_session(file_name, upload_type):
    """Presigned POST for a direct browser upload, recorded as a session"""
    if upload_type not in UPLOAD_FOLDERS:
        raise ValueError(f"Unknown upload type: {upload_type}")
    if not is_allowed_file(file_name, allowed_extensions_for(upload_type)):
        raise ValueError("Unsupported file type")

    key = build_object_key(file_name, upload_type)
    content_type = mimetypes.guess_type(file_name)[0] or 'application/octet-stream'
    presigned_post = generate_presigned_post(key, content_type)

    upload_id = uuid.uuid4().hex
    get_db().collection(UPLOAD_SESSIONS).document(upload_id).set({
        'uploadId': upload_id,
        'key': key,
        'type': upload_type,
        'fileName': file_name,
        'status': 'pending',
        'createdAt': utc_now_iso()
    })

    expire = datetime.now(timezone.utc) + timedelta(seconds=UPLOAD_AUTH_EXPIRES)
    return {
        'uploadId': upload_id,
        'url': presigned_post['url'],
        'fields': presigned_post['fields'],
        'key': key,
        'expire': int(expire.timestamp())
    }
