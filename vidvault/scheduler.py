# vidvault/scheduler.py

import atexit
import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse, parse_qs

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .config import URL_REFRESH_HOURS
from .database import get_db, VIDEOS
from .storage import generate_presigned_url
from .utils import utc_now_iso

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(
    timezone='UTC',
    job_defaults={
        'coalesce': True,
        'max_instances': 1
    }
)


def is_presigned_url_expired(url, safety_margin_minutes=60):
    """True when a presigned URL expires within the safety margin"""
    try:
        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        if 'X-Amz-Date' not in query or 'X-Amz-Expires' not in query:
            return True
        issued_str = query['X-Amz-Date'][0]
        expires_in = int(query['X-Amz-Expires'][0])
        issued_time = datetime.strptime(issued_str, '%Y%m%dT%H%M%SZ').replace(tzinfo=timezone.utc)
        expiry_time = issued_time + timedelta(seconds=expires_in)
        margin_time = datetime.now(timezone.utc) + timedelta(minutes=safety_margin_minutes)
        return margin_time >= expiry_time
    except Exception as e:
        logger.warning(f"URL check failed: {e}")
        return True


def refresh_video_urls(data, safety_margin_minutes=120):
    """Fields to update for one video document, empty when nothing expired"""
    update_data = {}

    video_key = data.get('videoKey', '')
    if video_key and is_presigned_url_expired(data.get('videoUrl', ''), safety_margin_minutes):
        update_data['videoUrl'] = generate_presigned_url(video_key)

    thumbnail_key = data.get('thumbnailKey', '')
    if thumbnail_key and is_presigned_url_expired(data.get('thumbnailUrl', ''), safety_margin_minutes):
        update_data['thumbnailUrl'] = generate_presigned_url(thumbnail_key)

    if update_data:
        update_data['urlsRefreshedAt'] = utc_now_iso()
    return update_data


def refresh_expiring_urls():
    """Refresh presigned URLs of stored videos that are about to expire"""
    try:
        logger.info("🔄 Background URL refresh started...")

        updated_count = 0
        total_count = 0

        for doc in get_db().collection(VIDEOS).stream():
            total_count += 1
            try:
                update_data = refresh_video_urls(doc.to_dict())
                if update_data:
                    doc.reference.update(update_data)
                    updated_count += 1
                    logger.info(f"✅ Video {doc.id} URLs refreshed")
            except Exception as e:
                logger.error(f"❌ Video {doc.id} URL refresh failed: {e}")

        logger.info(f"🎉 URL refresh finished: {updated_count}/{total_count}")
        return updated_count

    except Exception as e:
        logger.error(f"❌ URL refresh job error: {e}")
        return 0


def start_scheduler():
    """Start the background scheduler"""
    try:
        scheduler.add_job(
            func=refresh_expiring_urls,
            trigger=IntervalTrigger(hours=URL_REFRESH_HOURS),
            id='refresh_urls',
            name='Video URL refresh',
            replace_existing=True
        )

        scheduler.start()
        logger.info("🚀 Background scheduler started")

        atexit.register(lambda: scheduler.shutdown())

    except Exception as e:
        logger.error(f"❌ Scheduler start failed: {e}")
