# vidvault/admin_routes.py
from flask import Blueprint, request, jsonify, send_file
import io
import logging
import threading

from .auth import admin_required
from .config import REGISTRATION_STATUSES
from .database import (
    REGISTRATIONS, MESSAGES, VIDEOS,
    list_documents, get_document, create_document, update_document, delete_document,
    count_documents, get_site_settings, save_settings_document
)
from .exporter import registrations_to_excel, XLSX_CONTENT_TYPE
from .api_routes import video_with_source
from .scheduler import refresh_expiring_urls, scheduler
from .storage import delete_object
from .utils import missing_fields, missing_fields_error, without_password, utc_now_iso, start_of_today_iso, to_bool

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)

ADMIN_REGISTRATION_FIELDS = ['name', 'email', 'phone', 'organization']
VIDEO_FIELDS = ['title', 'description', 'category', 'videoUrl']
VIDEO_OPTIONAL_FIELDS = ['thumbnailUrl', 'duration', 'durationSeconds', 'videoKey', 'thumbnailKey']
SETTINGS_REQUIRED_FIELDS = ['siteName', 'contactEmail']


def _format_registration(registration):
    registration = without_password(registration)
    registration.setdefault('status', 'pending')
    return registration


# ------------------------------------------------------- registrations

@admin_bp.route('/registrations', methods=['GET'])
@admin_required
def list_registrations():
    try:
        registrations = [_format_registration(r) for r in list_documents(REGISTRATIONS)]
        return jsonify(registrations), 200
    except Exception as e:
        logger.error(f"Registration list error: {e}")
        return jsonify({'error': 'Failed to fetch registrations'}), 500


@admin_bp.route('/registrations', methods=['POST'])
@admin_required
def create_registration():
    data = request.get_json(silent=True) or {}

    missing = missing_fields(data, ADMIN_REGISTRATION_FIELDS)
    if missing:
        return jsonify({'error': missing_fields_error(missing)}), 400

    try:
        now = utc_now_iso()
        registration = {k: v for k, v in data.items() if k not in ('_id', 'password')}
        registration.update({
            'status': 'pending',
            'createdAt': now,
            'updatedAt': now
        })
        registration_id = create_document(REGISTRATIONS, registration)
        logger.info(f"Registration added by admin: {data['email']}")

        return jsonify({
            'message': 'Registration submitted successfully',
            'registrationId': registration_id
        }), 200

    except Exception as e:
        logger.error(f"Registration create error: {e}")
        return jsonify({'error': 'Failed to submit registration'}), 500


@admin_bp.route('/registrations/<registration_id>', methods=['PATCH'])
@admin_required
def update_registration_status(registration_id):
    data = request.get_json(silent=True) or {}
    status = data.get('status')

    if status not in REGISTRATION_STATUSES:
        return jsonify({'error': 'Invalid status value'}), 400

    try:
        if not update_document(REGISTRATIONS, registration_id,
                               {'status': status, 'updatedAt': utc_now_iso()}):
            return jsonify({'error': 'Registration not found'}), 404

        logger.info(f"Registration {registration_id} -> {status}")
        return jsonify({
            'message': 'Registration status updated successfully',
            'registration': _format_registration(get_document(REGISTRATIONS, registration_id))
        }), 200

    except Exception as e:
        logger.error(f"Registration update error ({registration_id}): {e}")
        return jsonify({'error': 'Failed to update registration'}), 500


@admin_bp.route('/registrations/export', methods=['GET'])
@admin_required
def export_registrations():
    """All registrations as an xlsx download"""
    try:
        content = registrations_to_excel(list_documents(REGISTRATIONS))
        return send_file(
            io.BytesIO(content),
            mimetype=XLSX_CONTENT_TYPE,
            as_attachment=True,
            download_name='registrations.xlsx'
        )
    except Exception as e:
        logger.error(f"Registration export error: {e}")
        return jsonify({'error': 'Failed to export registrations'}), 500


# ------------------------------------------------------------ messages

@admin_bp.route('/messages', methods=['GET'])
@admin_required
def list_messages():
    try:
        messages = list_documents(MESSAGES)
        for message in messages:
            message['read'] = bool(message.get('read', False))
        return jsonify(messages), 200
    except Exception as e:
        logger.error(f"Message list error: {e}")
        return jsonify({'error': 'Failed to fetch messages'}), 500


@admin_bp.route('/messages/<message_id>', methods=['PATCH'])
@admin_required
def update_message(message_id):
    data = request.get_json(silent=True) or {}
    if 'read' not in data:
        return jsonify({'error': 'read is required'}), 400

    try:
        if not update_document(MESSAGES, message_id,
                               {'read': to_bool(data['read']), 'updatedAt': utc_now_iso()}):
            return jsonify({'error': 'Message not found'}), 404
        return jsonify({'message': 'Message updated successfully'}), 200
    except Exception as e:
        logger.error(f"Message update error ({message_id}): {e}")
        return jsonify({'error': 'Failed to update message'}), 500


@admin_bp.route('/messages/<message_id>', methods=['DELETE'])
@admin_required
def remove_message(message_id):
    try:
        if not delete_document(MESSAGES, message_id):
            return jsonify({'error': 'Message not found'}), 404
        return jsonify({'message': 'Message deleted successfully'}), 200
    except Exception as e:
        logger.error(f"Message delete error ({message_id}): {e}")
        return jsonify({'error': 'Failed to delete message'}), 500


# -------------------------------------------------------------- videos

@admin_bp.route('/videos', methods=['GET'])
@admin_required
def list_admin_videos():
    try:
        return jsonify([video_with_source(v) for v in list_documents(VIDEOS)]), 200
    except Exception as e:
        logger.error(f"Video list error: {e}")
        return jsonify({'error': 'Failed to fetch videos'}), 500


@admin_bp.route('/videos', methods=['POST'])
@admin_required
def create_video():
    data = request.get_json(silent=True) or {}

    missing = missing_fields(data, VIDEO_FIELDS)
    if missing:
        return jsonify({'error': missing_fields_error(missing)}), 400

    try:
        now = utc_now_iso()
        video = {field: data[field] for field in VIDEO_FIELDS}
        for field in VIDEO_OPTIONAL_FIELDS:
            if data.get(field) is not None:
                video[field] = data[field]
        video.update({
            'featured': to_bool(data.get('featured', False)),
            'createdAt': now,
            'updatedAt': now
        })
        video['_id'] = create_document(VIDEOS, video)
        logger.info(f"🎬 Video created: {video['title']}")

        return jsonify(video_with_source(video)), 201

    except Exception as e:
        logger.error(f"Video create error: {e}")
        return jsonify({'error': 'Failed to create video'}), 500


@admin_bp.route('/videos/<video_id>', methods=['PATCH'])
@admin_required
def update_video(video_id):
    data = request.get_json(silent=True) or {}
    changes = {k: v for k, v in data.items() if k not in ('_id', 'createdAt', 'source')}
    if 'featured' in changes:
        changes['featured'] = to_bool(changes['featured'])
    changes['updatedAt'] = utc_now_iso()

    try:
        if not update_document(VIDEOS, video_id, changes):
            return jsonify({'error': 'Video not found'}), 404
        return jsonify({'message': 'Video updated successfully'}), 200
    except Exception as e:
        logger.error(f"Video update error ({video_id}): {e}")
        return jsonify({'error': 'Failed to update video'}), 500


@admin_bp.route('/videos/<video_id>', methods=['DELETE'])
@admin_required
def remove_video(video_id):
    """Delete a video and the stored objects it owns"""
    try:
        video = get_document(VIDEOS, video_id)
        if not video:
            return jsonify({'error': 'Video not found'}), 404

        for key_field in ('videoKey', 'thumbnailKey'):
            if video.get(key_field):
                delete_object(video[key_field])

        delete_document(VIDEOS, video_id)
        logger.info(f"🗑️ Video deleted: {video_id}")
        return jsonify({'message': 'Video deleted successfully'}), 200

    except Exception as e:
        logger.error(f"Video delete error ({video_id}): {e}")
        return jsonify({'error': 'Failed to delete video'}), 500


@admin_bp.route('/videos/<video_id>/stream', methods=['GET'])
@admin_required
def stream_video(video_id):
    try:
        video = get_document(VIDEOS, video_id)
    except Exception as e:
        logger.error(f"Video stream error ({video_id}): {e}")
        return jsonify({'error': 'Failed to process video request'}), 500

    if not video:
        return jsonify({'error': 'Video not found'}), 404
    if not video.get('videoUrl'):
        return jsonify({'error': 'Video URL is missing'}), 404
    return jsonify({'url': video['videoUrl']}), 200


@admin_bp.route('/videos/<video_id>/preview', methods=['GET'])
@admin_required
def preview_video(video_id):
    try:
        video = get_document(VIDEOS, video_id)
    except Exception as e:
        logger.error(f"Video preview error ({video_id}): {e}")
        return jsonify({'error': 'Failed to fetch video preview'}), 500

    if not video:
        return jsonify({'error': 'Video not found'}), 404
    if not video.get('videoUrl'):
        return jsonify({'error': 'Video URL not found'}), 404

    return jsonify({
        'url': video['videoUrl'],
        'title': video.get('title'),
        'description': video.get('description'),
        'duration': video.get('duration'),
        'thumbnailUrl': video.get('thumbnailUrl'),
        'category': video.get('category'),
        'featured': video.get('featured', False),
        'source': video_with_source(video)['source']
    }), 200


# ------------------------------------------------------------ settings

@admin_bp.route('/settings', methods=['GET'])
def read_settings():
    """Public: pages read the site name and registration switch"""
    try:
        return jsonify(get_site_settings()), 200
    except Exception as e:
        logger.error(f"Settings read error: {e}")
        return jsonify({'error': 'Failed to fetch settings'}), 500


@admin_bp.route('/settings', methods=['PUT'])
@admin_required
def write_settings():
    data = request.get_json(silent=True) or {}

    missing = missing_fields(data, SETTINGS_REQUIRED_FIELDS)
    if missing:
        return jsonify({'error': missing_fields_error(missing)}), 400

    try:
        settings = {k: v for k, v in data.items() if k != '_id'}
        settings['updatedAt'] = utc_now_iso()
        saved = save_settings_document(settings)
        logger.info("⚙️ Site settings updated")

        return jsonify({
            'message': 'Settings updated successfully',
            'settings': saved
        }), 200

    except Exception as e:
        logger.error(f"Settings update error: {e}")
        return jsonify({'error': 'Failed to update settings'}), 500


# ----------------------------------------------------------- dashboard

@admin_bp.route('/dashboard/stats', methods=['GET'])
@admin_required
def dashboard_stats():
    try:
        recent = [
            {
                '_id': r['_id'],
                'name': r.get('name') or r.get('fullName'),
                'email': r.get('email'),
                'organization': r.get('organization'),
                'status': r.get('status', 'pending'),
                'createdAt': r.get('createdAt')
            }
            for r in list_documents(REGISTRATIONS, limit=5)
        ]

        return jsonify({
            'registrations': {
                'total': count_documents(REGISTRATIONS),
                'accepted': count_documents(REGISTRATIONS, 'status', 'approved'),
                'pending': count_documents(REGISTRATIONS, 'status', 'pending'),
                'rejected': count_documents(REGISTRATIONS, 'status', 'rejected'),
                'today': count_documents(REGISTRATIONS, 'createdAt', start_of_today_iso(), op='>=')
            },
            'messages': {
                'total': count_documents(MESSAGES),
                'unread': count_documents(MESSAGES, 'read', False)
            },
            'videos': {
                'total': count_documents(VIDEOS),
                'featured': count_documents(VIDEOS, 'featured', True)
            },
            'recentRegistrations': recent
        }), 200

    except Exception as e:
        logger.error(f"Dashboard stats error: {e}")
        return jsonify({'error': 'Failed to fetch dashboard statistics'}), 500


# --------------------------------------------------------- maintenance

@admin_bp.route('/refresh-urls', methods=['POST'])
@admin_required
def manual_refresh_urls():
    """Refresh expiring presigned URLs in the background"""
    try:
        thread = threading.Thread(target=refresh_expiring_urls)
        thread.daemon = True
        thread.start()

        return jsonify({
            'message': 'URL refresh started in the background.',
            'status': 'started'
        }), 200

    except Exception as e:
        logger.error(f"Manual URL refresh failed: {e}")
        return jsonify({'error': 'Failed to start the refresh job.'}), 500


@admin_bp.route('/scheduler-status', methods=['GET'])
@admin_required
def get_scheduler_status():
    try:
        jobs = []
        for job in scheduler.get_jobs():
            jobs.append({
                'id': job.id,
                'name': job.name,
                'next_run': job.next_run_time.isoformat() if job.next_run_time else None,
                'trigger': str(job.trigger)
            })

        return jsonify({
            'running': scheduler.running,
            'jobs': jobs
        }), 200

    except Exception as e:
        logger.error(f"Scheduler status error: {e}")
        return jsonify({'error': 'Could not read scheduler status.'}), 500
