"""Storage configuration for S3 and S3-compatible endpoints (LocalStack)."""

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from .settings import Settings, settings as default_settings


def get_storage_client(settings: Settings = default_settings) -> BaseClient:
    """
    Build a boto3 S3 client from settings.
    An explicit endpoint (LocalStack in dev) switches to path-style addressing.
    """
    config = Config(
        signature_version="s3v4",
        connect_timeout=settings.s3_connect_timeout,
        read_timeout=settings.s3_read_timeout,
        retries={"max_attempts": settings.s3_max_attempts, "mode": "standard"},
        s3={"addressing_style": "path" if settings.s3_endpoint_url and settings.s3_force_path_style else "auto"},
    )

    return boto3.client(
        "s3",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url or None,
        config=config,
    )


def get_bucket_name(settings: Settings = default_settings) -> str:
    """Get bucket name for the configured storage."""
    if not settings.s3_bucket_name:
        raise ValueError("S3_BUCKET must be set")
    return settings.s3_bucket_name
