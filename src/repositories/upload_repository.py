"""Upload repository: short-lived blob storage for staged files in S3."""

from datetime import UTC, datetime, timedelta
from typing import Any

import aioboto3
from botocore.exceptions import ClientError

from src.config import settings
from src.logging.config import get_logger
from src.repositories.base import get_aws_config

logger = get_logger(__name__)

# S3 lowercases user metadata keys
EXPIRES_AT_KEY = "expires-at"

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class StoredBlob:
    """Bytes and metadata of one staged file as read back from storage."""

    def __init__(
        self,
        key: str,
        body: bytes,
        content_type: str | None,
        expires_at: datetime | None,
    ) -> None:
        self.key = key
        self.body = body
        self.content_type = content_type
        self.expires_at = expires_at

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the blob is past its expiry time."""
        if self.expires_at is None:
            return False
        return (now or datetime.now(UTC)) >= self.expires_at


class UploadRepository:
    """
    Repository for staged upload blobs in S3.

    Objects carry an explicit expires-at metadata value so reads can
    refuse expired files before the bucket lifecycle rule removes them.
    """

    def __init__(
        self,
        bucket: str | None = None,
        ttl_hours: int | None = None,
        session: aioboto3.Session | None = None,
    ) -> None:
        """
        Initialize UploadRepository.

        Args:
            bucket: S3 bucket name (defaults to settings)
            ttl_hours: Lifetime of a staged file (defaults to settings)
            session: aioboto3 session (creates new if None)
        """
        self.bucket = bucket or settings.upload_bucket
        self.ttl = timedelta(
            hours=ttl_hours if ttl_hours is not None else settings.upload_ttl_hours
        )
        self.session = session or aioboto3.Session()

    async def put(self, key: str, body: bytes, content_type: str) -> datetime:
        """
        Store a blob under key.

        Args:
            key: Object key (the public filename)
            body: File bytes
            content_type: MIME type stored with the object

        Returns:
            Expiry time of the stored blob
        """
        expires_at = datetime.now(UTC) + self.ttl
        async with self.session.client("s3", **get_aws_config()) as s3:
            await s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                Metadata={EXPIRES_AT_KEY: expires_at.isoformat()},
                Expires=expires_at,
            )

        logger.info(
            "Staged upload stored",
            extra={
                "context": {
                    "key": key,
                    "size": len(body),
                    "content_type": content_type,
                    "expires_at": expires_at.isoformat(),
                }
            },
        )
        return expires_at

    async def get(self, key: str) -> StoredBlob | None:
        """
        Read a blob by key.

        Args:
            key: Object key

        Returns:
            StoredBlob, or None if no such object exists
        """
        async with self.session.client("s3", **get_aws_config()) as s3:
            try:
                response = await s3.get_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                    return None
                raise

            async with response["Body"] as stream:
                body = await stream.read()

        metadata: dict[str, Any] = response.get("Metadata") or {}
        return StoredBlob(
            key=key,
            body=body,
            content_type=response.get("ContentType"),
            expires_at=_parse_expiry(metadata.get(EXPIRES_AT_KEY)),
        )

    async def delete(self, key: str) -> None:
        """Remove a blob; missing keys are ignored by S3."""
        async with self.session.client("s3", **get_aws_config()) as s3:
            await s3.delete_object(Bucket=self.bucket, Key=key)


def _parse_expiry(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Ignoring malformed expiry metadata: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
