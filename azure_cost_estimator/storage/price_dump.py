"""
Archival upload of the full retail price listing to S3.
The dump is write-only; nothing in this service reads it back.
"""
from typing import List, Optional
import json
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from azure_cost_estimator.core.config import config
from azure_cost_estimator.domain.catalog_models import PriceCatalogEntry


logger = logging.getLogger(__name__)


class PriceDumpError(Exception):
    """Raised when the listing cannot be uploaded."""
    pass


class PriceDumpUploader:
    """Uploads the fetched listing as a single JSON object."""

    def __init__(self, bucket: str, key: Optional[str] = None, client=None):
        """
        Initialize uploader.

        Args:
            bucket: Target S3 bucket
            key: Object key (defaults to PRICE_DUMP_KEY)
            client: boto3 S3 client (creates new if None)
        """
        self.bucket = bucket
        self.key = key or config.PRICE_DUMP_KEY
        self.client = client or boto3.client("s3", region_name=config.AWS_REGION)

    def upload(self, entries: List[PriceCatalogEntry]) -> None:
        """
        Upload the listing.

        Args:
            entries: Every entry fetched from the feed, in feed order

        Raises:
            PriceDumpError: If the upload fails
        """
        body = json.dumps([entry.to_dict() for entry in entries]).encode("utf-8")
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=body,
                ContentType="application/json"
            )
        except (ClientError, BotoCoreError) as error:
            logger.error(f"Failed to upload price dump to s3://{self.bucket}/{self.key}: {error}")
            raise PriceDumpError(f"Failed to upload price dump: {error}") from error

        logger.info(f"Uploaded {len(entries)} price items to s3://{self.bucket}/{self.key}")


def create_price_dump_uploader() -> Optional[PriceDumpUploader]:
    """
    Create an uploader if S3_BUCKET is configured.

    Returns:
        PriceDumpUploader, or None when archival is disabled
    """
    if not config.S3_BUCKET:
        return None
    return PriceDumpUploader(bucket=config.S3_BUCKET)
