# vidvault/config.py

import os

# Admin / auth
ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@example.com')
ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'changeme')
JWT_SECRET = os.environ.get('JWT_SECRET', 'vidvault-dev-jwt-secret-change-me-in-production')
JWT_ALGORITHM = 'HS256'
JWT_EXPIRES_HOURS = 4
SECRET_KEY = os.environ.get('FLASK_SECRET_KEY', 'supersecret')

# Object storage (S3 compatible, Wasabi by default)
AWS_ACCESS_KEY = os.environ.get('AWS_ACCESS_KEY', '')
AWS_SECRET_KEY = os.environ.get('AWS_SECRET_KEY', '')
REGION_NAME = os.environ.get('REGION_NAME', 'us-east-1')
BUCKET_NAME = os.environ.get('BUCKET_NAME', 'vidvault')
S3_ENDPOINT_URL = os.environ.get('S3_ENDPOINT_URL') or f'https://s3.{REGION_NAME}.wasabisys.com'
PRESIGNED_URL_EXPIRES = int(os.environ.get('PRESIGNED_URL_EXPIRES', 604800))  # 7 days
UPLOAD_AUTH_EXPIRES = 3600
URL_REFRESH_HOURS = int(os.environ.get('URL_REFRESH_HOURS', 3))


def firebase_credentials():
    """Service account dict built from the environment, or None when unset"""
    if not os.environ.get('project_id') or not os.environ.get('private_key'):
        return None
    return {
        "type": os.environ.get("type", "service_account"),
        "project_id": os.environ["project_id"],
        "private_key_id": os.environ.get("private_key_id", ""),
        "private_key": os.environ["private_key"].replace('\\n', '\n'),
        "client_email": os.environ.get("client_email", ""),
        "client_id": os.environ.get("client_id", ""),
        "auth_uri": os.environ.get("auth_uri", "https://accounts.google.com/o/oauth2/auth"),
        "token_uri": os.environ.get("token_uri", "https://oauth2.googleapis.com/token"),
        "auth_provider_x509_cert_url": os.environ.get(
            "auth_provider_x509_cert_url", "https://www.googleapis.com/oauth2/v1/certs"),
        "client_x509_cert_url": os.environ.get("client_x509_cert_url", "")
    }


# Event seats
TOTAL_SEATS = int(os.environ.get('TOTAL_SEATS', 100))

REGISTRATION_STATUSES = ('pending', 'approved', 'rejected')

DEFAULT_SETTINGS = {
    'siteName': 'Video Platform',
    'siteDescription': 'Your video sharing platform',
    'contactEmail': 'admin@example.com',
    'allowRegistrations': True
}

# Uploads
MAX_CONTENT_LENGTH = 500 * 1024 * 1024  # 500MB
ALLOWED_VIDEO_EXTENSIONS = {'.mp4', '.avi', '.mov', '.wmv', '.flv', '.mkv', '.webm', '.m4v', '.mpg', '.mpeg'}
ALLOWED_IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}
UPLOAD_FOLDERS = {
    'video': 'videos',
    'thumbnail': 'thumbnails'
}
