# vidvault/auth.py
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import request, jsonify
from werkzeug.security import generate_password_hash, check_password_hash

from . import config

# werkzeug hashes look like "<method>$<salt>$<hash>"
_HASH_PREFIXES = ('pbkdf2:', 'scrypt:')


def is_admin_credentials(email, password):
    return bool(config.ADMIN_EMAIL) and email == config.ADMIN_EMAIL and password == config.ADMIN_PASSWORD


def create_jwt_for_admin():
    """Signed admin token for the admin console"""
    now = datetime.now(timezone.utc)
    payload = {
        'sub': config.ADMIN_EMAIL,
        'role': 'admin',
        'iat': now,
        'exp': now + timedelta(hours=config.JWT_EXPIRES_HOURS)
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_jwt_token(token):
    """Payload of a valid admin token, None otherwise"""
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get('sub') != config.ADMIN_EMAIL:
        return None
    return payload


def admin_required(f):
    """Require a valid admin bearer token"""
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization', None)
        if not auth_header or not auth_header.startswith('Bearer '):
            return jsonify({'error': 'Admin authentication required'}), 401

        token = auth_header.split(' ', 1)[1]
        if not verify_jwt_token(token):
            return jsonify({'error': 'Invalid or expired token'}), 401

        return f(*args, **kwargs)
    return decorated


def hash_password(password):
    return generate_password_hash(password)


def compare_passwords(password, stored):
    if not stored:
        return False
    if stored.startswith(_HASH_PREFIXES):
        return check_password_hash(stored, password)
    # legacy plaintext record
    return password == stored
