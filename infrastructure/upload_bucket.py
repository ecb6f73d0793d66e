"""Script to create the upload staging bucket for LocalStack or AWS."""

import asyncio
from typing import Any

import aioboto3
from botocore.exceptions import ClientError

from src.config import settings
from src.repositories.base import get_aws_config

# Staged uploads are only needed until the record is submitted
EXPIRATION_DAYS = 1


async def create_bucket(s3: Any, bucket: str, region: str) -> None:
    """
    Create the staging bucket if it does not exist.

    Args:
        s3: S3 client
        bucket: Bucket name
        region: AWS region of the bucket
    """
    params: dict[str, Any] = {"Bucket": bucket}
    # us-east-1 rejects an explicit location constraint
    if region != "us-east-1":
        params["CreateBucketConfiguration"] = {"LocationConstraint": region}

    try:
        await s3.create_bucket(**params)
        print(f"✓ Created bucket: {bucket}")
    except ClientError as e:
        if e.response["Error"]["Code"] in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
            print(f"→ Bucket already exists: {bucket}")
        else:
            raise


async def apply_lifecycle(s3: Any, bucket: str) -> None:
    """
    Expire every staged object after EXPIRATION_DAYS.

    The service also refuses to serve objects past their expires-at
    metadata, since S3 lifecycle deletion runs only once a day.
    """
    await s3.put_bucket_lifecycle_configuration(
        Bucket=bucket,
        LifecycleConfiguration={
            "Rules": [
                {
                    "ID": "expire-staged-uploads",
                    "Filter": {"Prefix": ""},
                    "Status": "Enabled",
                    "Expiration": {"Days": EXPIRATION_DAYS},
                    "AbortIncompleteMultipartUpload": {"DaysAfterInitiation": 1},
                }
            ]
        },
    )
    print(f"✓ Lifecycle rule set: expire after {EXPIRATION_DAYS} day(s)")


async def main() -> None:
    """Create the staging bucket and its lifecycle rule."""
    print("Creating upload staging bucket...")
    print(f"Region: {settings.aws_region}")
    print(f"Endpoint: {settings.s3_endpoint_url or 'AWS'}")
    print()

    session = aioboto3.Session()
    async with session.client("s3", **get_aws_config()) as s3:
        await create_bucket(s3, settings.upload_bucket, settings.aws_region)
        await apply_lifecycle(s3, settings.upload_bucket)

    print()
    print("✓ Upload bucket ready!")


if __name__ == "__main__":
    asyncio.run(main())
