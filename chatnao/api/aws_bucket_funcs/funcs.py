"""
S3 Utilities — Client Init • Presigned Upload • Presigned Playback
==================================================================

Purpose
-------
Small helper module for the audio clips attached to messages:
- Initialize an S3 client with Signature V4
- Generate a presigned PUT URL for a freshly allocated object key
- Generate a presigned GET URL so a client can play a stored clip

The browser uploads the recorded blob straight to S3 with the PUT URL, then sends
the returned `storageId` (the object key) along with the message.

Configuration (from `Settings`)
-------------------------------
- AWS_ACCESS_KEY / AWS_SECRET_KEY : credentials (omit to use the default AWS chain)
- REGION                          : AWS region (e.g., "eu-central-1")
- BUCKET_NAME                     : bucket holding audio clips
- S3_ENDPOINT_URL                 : optional custom endpoint (MinIO, LocalStack)
- AUDIO_URL_EXPIRES_SECONDS       : lifetime of presigned URLs

Security Notes
--------------
- Presigned URLs grant temporary access; never log them or the credentials.
- Only keys issued by `create_upload_url` may be attached to a message, so a
  client cannot obtain a playback URL for any other object in the bucket.
"""

import logging
import uuid

import boto3
from botocore.config import Config

from chatnao.database.config.config import Settings

logger = logging.getLogger(__name__)

AUDIO_KEY_PREFIX = "audio/"


def is_audio_key(key) -> bool:
    """True only for keys of the `audio/<uuid4>` form that `create_upload_url` issues."""
    if not isinstance(key, str) or not key.startswith(AUDIO_KEY_PREFIX):
        return False
    rest = key[len(AUDIO_KEY_PREFIX):]
    try:
        parsed = uuid.UUID(rest)
    except ValueError:
        return False
    return parsed.version == 4 and str(parsed) == rest


def get_client(settings: Settings):
    """
    Initialize and return a low-level S3 client configured for Signature V4.

    Returns:
        botocore.client.S3: An S3 client ready for object operations.
    """
    return boto3.client(
        "s3",
        aws_access_key_id=settings.AWS_ACCESS_KEY,
        aws_secret_access_key=settings.AWS_SECRET_KEY,
        region_name=settings.REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
        config=Config(signature_version="s3v4"),
    )


def upload_url(key: str, s3_client, bucket: str, expires: int = 3600) -> str:
    """
    Generate a presigned URL that lets a client PUT one object.

    Args:
        key (str): Object key to write.
        s3_client (botocore.client.S3): Client returned by `get_client()`.
        bucket (str): Target bucket.
        expires (int, optional): URL expiration in seconds (default: 3600).

    Returns:
        str: A presigned PUT URL.
    """
    return s3_client.generate_presigned_url(
        "put_object",
        Params={"Bucket": bucket, "Key": key},
        ExpiresIn=expires,
    )


def download(key: str, s3_client, bucket: str, expires: int = 3600) -> str:
    """
    Generate a presigned URL for downloading an object.

    Args:
        key (str): Object key in the bucket.
        s3_client (botocore.client.S3): Client returned by `get_client()`.
        bucket (str): Bucket holding the object.
        expires (int, optional): URL expiration in seconds (default: 3600).

    Returns:
        str: A presigned URL that allows temporary GET access.
    """
    return s3_client.generate_presigned_url(
        "get_object",
        Params={"Bucket": bucket, "Key": key},
        ExpiresIn=expires,
    )


class AudioStorage:
    """
    Audio clip storage bound to one bucket.

    The S3 client is created from the settings unless one is passed in.
    """

    def __init__(self, settings: Settings, s3_client=None):
        self.bucket = settings.BUCKET_NAME
        self.expires = settings.AUDIO_URL_EXPIRES_SECONDS
        self.s3_client = s3_client or get_client(settings)

    def create_upload_url(self) -> dict:
        """
        Allocate a new object key and a presigned URL to upload to it.

        Returns:
            dict: {"upload_url": str, "storage_id": str}
        """
        key = f"{AUDIO_KEY_PREFIX}{uuid.uuid4()}"
        url = upload_url(key, self.s3_client, self.bucket, self.expires)
        logger.debug("Issued upload URL for %s", key)
        return {"upload_url": url, "storage_id": key}

    is_valid_key = staticmethod(is_audio_key)

    def get_url(self, storage_id: str) -> str:
        """Presigned playback URL for a stored clip."""
        return download(storage_id, self.s3_client, self.bucket, self.expires)
