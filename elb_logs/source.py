from __future__ import annotations

import gzip
import logging
import zlib
from datetime import datetime
from typing import List, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import DecodeError, FetchError, ListingError
from .window import ObjectCandidate

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


class ObjectSource(Protocol):
    def list(self, bucket: str, prefix: str) -> List[ObjectCandidate]: ...

    def fetch_and_decompress(self, bucket: str, key: str) -> bytes: ...


def build_s3_client(settings: Settings):
    """Create the S3 client once from explicit settings; None values fall back to the boto3 chain."""
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        aws_session_token=settings.aws_session_token,
        config=Config(
            retries={"max_attempts": settings.s3_max_attempts, "mode": "standard"},
            s3={"addressing_style": settings.s3_addressing_style},
            max_pool_connections=max(10, settings.max_workers),
        ),
    )


def _last_modified(value) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return "" if value is None else str(value)


class S3ObjectSource:
    """
    Lists and downloads load balancer log objects.

    The client is injected so credentials and region are resolved exactly once
    by the caller.
    """

    def __init__(self, s3_client):
        self.s3 = s3_client

    def list(self, bucket: str, prefix: str) -> List[ObjectCandidate]:
        candidates = []
        try:
            paginator = self.s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    candidates.append(
                        ObjectCandidate(key=obj["Key"], last_modified=_last_modified(obj.get("LastModified")))
                    )
        except ClientError as e:
            code = (e.response.get("Error") or {}).get("Code")
            raise ListingError(bucket, prefix, f"{code}: {e}") from e
        except BotoCoreError as e:
            raise ListingError(bucket, prefix, str(e)) from e
        logger.debug("Listed %d objects under s3://%s/%s", len(candidates), bucket, prefix)
        return candidates

    def fetch_and_decompress(self, bucket: str, key: str) -> bytes:
        try:
            obj = self.s3.get_object(Bucket=bucket, Key=key)
            payload = obj["Body"].read()
        except ClientError as e:
            code = (e.response.get("Error") or {}).get("Code")
            raise FetchError(key, str(e), code=code) from e
        except BotoCoreError as e:
            raise FetchError(key, str(e)) from e

        if payload[:2] != GZIP_MAGIC:
            raise DecodeError(key, f"not a gzip stream, first bytes {payload[:16]!r}")
        try:
            data = gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as e:
            raise DecodeError(key, f"gunzip failed: {e}") from e
        logger.debug("Fetched s3://%s/%s (%d -> %d bytes)", bucket, key, len(payload), len(data))
        return data
