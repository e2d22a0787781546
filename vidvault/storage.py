# vidvault/storage.py
import logging

import boto3
from boto3.s3.transfer import TransferConfig

from .config import (
    AWS_ACCESS_KEY, AWS_SECRET_KEY, REGION_NAME, BUCKET_NAME, S3_ENDPOINT_URL,
    PRESIGNED_URL_EXPIRES, UPLOAD_AUTH_EXPIRES, MAX_CONTENT_LENGTH
)

logger = logging.getLogger(__name__)

s3_config = TransferConfig(
    multipart_threshold=1024 * 1024 * 25,
    multipart_chunksize=1024 * 1024 * 50,
    max_concurrency=5,
    use_threads=True
)

_s3 = None


def get_s3():
    """S3 client, created on first use"""
    global _s3
    if _s3 is None:
        _s3 = boto3.client(
            's3',
            aws_access_key_id=AWS_ACCESS_KEY or None,
            aws_secret_access_key=AWS_SECRET_KEY or None,
            region_name=REGION_NAME,
            endpoint_url=S3_ENDPOINT_URL
        )
    return _s3


def set_s3(client):
    global _s3
    _s3 = client


def generate_presigned_url(key, expires_in=PRESIGNED_URL_EXPIRES):
    """Presigned GET URL for an object"""
    return get_s3().generate_presigned_url(
        ClientMethod='get_object',
        Params={'Bucket': BUCKET_NAME, 'Key': key},
        ExpiresIn=expires_in
    )


def generate_presigned_post(key, content_type, expires_in=UPLOAD_AUTH_EXPIRES):
    """Presigned POST form for a direct browser upload"""
    return get_s3().generate_presigned_post(
        Bucket=BUCKET_NAME,
        Key=key,
        Fields={'Content-Type': content_type},
        Conditions=[
            {'Content-Type': content_type},
            ['content-length-range', 0, MAX_CONTENT_LENGTH]
        ],
        ExpiresIn=expires_in
    )


def upload_to_s3(file_path, key, content_type=None):
    extra_args = {'ContentType': content_type} if content_type else None
    get_s3().upload_file(str(file_path), BUCKET_NAME, key, ExtraArgs=extra_args, Config=s3_config)


def delete_object(key):
    """Best-effort delete; a missing object is not an error"""
    try:
        get_s3().delete_object(Bucket=BUCKET_NAME, Key=key)
        logger.info(f"S3 object deleted: {key}")
    except Exception as e:
        logger.error(f"S3 delete failed ({key}): {e}")


def check_bucket():
    get_s3().head_bucket(Bucket=BUCKET_NAME)
