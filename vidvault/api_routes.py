# vidvault/api_routes.py
from flask import Blueprint, request, jsonify
import logging
import math

from .auth import (
    is_admin_credentials, create_jwt_for_admin, verify_jwt_token,
    hash_password, compare_passwords
)
from .config import TOTAL_SEATS
from .database import (
    REGISTRATIONS, MESSAGES, VIDEOS,
    list_documents, get_document, create_document, find_one, count_documents,
    get_site_settings, get_progress, save_progress
)
from .player.sources import parse_source
from .utils import missing_fields, missing_fields_error, without_password, utc_now_iso, to_bool
from .video_handler import process_upload, create_upload_session

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__)

REGISTRATION_FIELDS = ['email', 'phone', 'eventType', 'attendees', 'password', 'fullName']
CONTACT_FIELDS = ['name', 'email', 'message']


def video_with_source(video):
    """Video document plus the playback source the player will use"""
    url = video.get('videoUrl', '')
    video['source'] = parse_source(url).describe() if url else None
    return video


# ---------------------------------------------------------------- auth

@api_bp.route('/auth/login', methods=['POST'])
def login():
    """Admin or registered-user login"""
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    try:
        if is_admin_credentials(email, password):
            return jsonify({
                'success': True,
                'user': {
                    'email': email,
                    'role': 'admin',
                    'isRegistered': True
                },
                'token': create_jwt_for_admin()
            }), 200

        user = find_one(REGISTRATIONS, 'email', email)
        if not user or not compare_passwords(password, user.get('password')):
            return jsonify({'error': 'Invalid email or password'}), 401

        logger.info(f"User login: {email}")
        return jsonify({
            'message': 'Login successful',
            'user': without_password(user)
        }), 200

    except Exception as e:
        logger.error(f"Login error: {e}")
        return jsonify({'error': 'Failed to login'}), 500


@api_bp.route('/auth/verify', methods=['POST'])
def verify():
    data = request.get_json(silent=True) or {}
    token = data.get('token')
    if not token:
        return jsonify({'error': 'Token is required'}), 400

    payload = verify_jwt_token(token)
    if not payload:
        return jsonify({'error': 'Invalid token'}), 401

    return jsonify({'email': payload['sub'], 'role': payload.get('role', 'admin')}), 200


# ------------------------------------------------------- registrations

@api_bp.route('/registrations', methods=['POST'])
def register():
    """Public event registration"""
    data = request.get_json(silent=True) or {}

    missing = missing_fields(data, REGISTRATION_FIELDS)
    if missing:
        return jsonify({'error': missing_fields_error(missing)}), 400

    try:
        if not get_site_settings().get('allowRegistrations', True):
            return jsonify({'error': 'Registrations are currently closed'}), 403

        if count_documents(REGISTRATIONS) >= TOTAL_SEATS:
            return jsonify({'error': 'No seats remaining'}), 403

        if find_one(REGISTRATIONS, 'email', data['email']):
            return jsonify({'error': 'User already registered'}), 400

        registration = {
            'fullName': data['fullName'],
            'email': data['email'],
            'phone': data['phone'],
            'eventType': data['eventType'],
            'attendees': data['attendees'],
            'specialRequirements': data.get('specialRequirements', ''),
            'dietaryRestrictions': data.get('dietaryRestrictions', ''),
            'subscribe': to_bool(data.get('subscribe', False)),
            'password': hash_password(data['password']),
            'createdAt': utc_now_iso(),
            'status': 'pending',
            'ticketType': 'standard',
            'role': 'user'
        }
        registration['_id'] = create_document(REGISTRATIONS, registration)
        logger.info(f"✅ New registration: {data['email']}")

        return jsonify({
            'message': 'Registration successful',
            'user': without_password(registration)
        }), 200

    except Exception as e:
        logger.error(f"Registration error: {e}")
        return jsonify({'error': 'Failed to register user'}), 500


@api_bp.route('/registrations/count', methods=['GET'])
def registration_count():
    try:
        registered = count_documents(REGISTRATIONS)
        return jsonify({
            'total': TOTAL_SEATS,
            'registered': registered,
            'remaining': max(0, TOTAL_SEATS - registered)
        }), 200
    except Exception as e:
        logger.error(f"Registration count error: {e}")
        return jsonify({'error': 'Failed to fetch registration count'}), 500


@api_bp.route('/registrations/check', methods=['GET'])
def check_registration():
    email = request.args.get('email', '').strip()
    if not email:
        return jsonify({'error': 'Email is required'}), 400

    try:
        return jsonify({'isRegistered': find_one(REGISTRATIONS, 'email', email) is not None}), 200
    except Exception as e:
        logger.error(f"Registration check error: {e}")
        return jsonify({'error': 'Failed to check registration'}), 500


# ------------------------------------------------------------- contact

@api_bp.route('/contact', methods=['POST'])
def contact():
    data = request.get_json(silent=True) or {}

    missing = missing_fields(data, CONTACT_FIELDS)
    if missing:
        return jsonify({'error': missing_fields_error(missing)}), 400

    try:
        now = utc_now_iso()
        message_id = create_document(MESSAGES, {
            'name': data['name'],
            'email': data['email'],
            'subject': data.get('subject') or 'No Subject',
            'message': data['message'],
            'read': False,
            'status': 'new',
            'createdAt': now,
            'updatedAt': now
        })
        logger.info(f"📨 Contact message from {data['email']}")

        return jsonify({
            'success': True,
            'message': 'Message sent successfully',
            'messageId': message_id
        }), 200

    except Exception as e:
        logger.error(f"Contact message error: {e}")
        return jsonify({'error': 'Failed to send message'}), 500


# -------------------------------------------------------------- videos

@api_bp.route('/videos', methods=['GET'])
def list_videos():
    try:
        videos = [video_with_source(v) for v in list_documents(VIDEOS)]
        return jsonify(videos), 200
    except Exception as e:
        logger.error(f"Video list error: {e}")
        return jsonify({'error': 'Failed to fetch videos'}), 500


@api_bp.route('/videos/<video_id>', methods=['GET'])
def get_video(video_id):
    try:
        video = get_document(VIDEOS, video_id)
    except Exception as e:
        logger.error(f"Video fetch error ({video_id}): {e}")
        return jsonify({'error': 'Failed to fetch video'}), 500

    if not video:
        return jsonify({'error': 'Video not found'}), 404
    return jsonify(video_with_source(video)), 200


# ------------------------------------------------------------ progress

@api_bp.route('/progress/<video_id>', methods=['GET'])
def read_progress(video_id):
    email = request.args.get('email', '').strip()
    if not email:
        return jsonify({'error': 'Email is required'}), 400

    try:
        record = get_progress(email, video_id) or {}
        return jsonify({
            'videoId': video_id,
            'percent': int(record.get('percent', 0)),
            'completed': bool(record.get('completed', False))
        }), 200
    except Exception as e:
        logger.error(f"Progress read error ({email}, {video_id}): {e}")
        return jsonify({'error': 'Failed to fetch progress'}), 500


@api_bp.route('/progress/<video_id>', methods=['PUT'])
def write_progress(video_id):
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    if not email:
        return jsonify({'error': 'Email is required'}), 400

    try:
        percent = float(data.get('percent'))
    except (TypeError, ValueError):
        return jsonify({'error': 'percent must be a number'}), 400
    if not math.isfinite(percent):
        return jsonify({'error': 'percent must be a number'}), 400

    percent = int(round(min(max(percent, 0), 100)))
    try:
        record = save_progress(email, video_id, percent)
        return jsonify(record), 200
    except Exception as e:
        logger.error(f"Progress write error ({email}, {video_id}): {e}")
        return jsonify({'error': 'Failed to save progress'}), 500


# ------------------------------------------------------------- uploads

@api_bp.route('/upload', methods=['POST'])
def upload():
    """Multipart upload of a thumbnail or a video"""
    file = request.files.get('file')
    file_name = request.form.get('fileName') or (file.filename if file else '')
    upload_type = request.form.get('type', '')

    if not file or not file_name or not upload_type:
        return jsonify({'error': 'Missing required fields'}), 400

    try:
        result = process_upload(file, file_name, upload_type)
        return jsonify(result), 200
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Upload error: {e}")
        return jsonify({'error': 'Failed to upload file'}), 500


@api_bp.route('/upload-auth', methods=['GET'])
def upload_auth():
    """Presigned POST parameters for a direct browser upload"""
    file_name = request.args.get('fileName', '')
    upload_type = request.args.get('type', 'video')
    if not file_name:
        return jsonify({'error': 'fileName is required'}), 400

    try:
        return jsonify(create_upload_session(file_name, upload_type)), 200
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Upload auth error: {e}")
        return jsonify({'error': 'Failed to create upload session'}), 500
