"""Object storage for uploaded videos."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from tubely.config.settings import Settings
from tubely.files.assets import build_object_url
from tubely.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


class ObjectStore(ABC):
    @abstractmethod
    def upload(self, key: str, local_path: str, content_type: str) -> None:
        """Upload a local file under ``key``."""

    @abstractmethod
    def object_url(self, key: str) -> str:
        """Public URL for ``key``."""


class S3ObjectStore(ObjectStore):
    """S3 (or S3-compatible) bucket."""

    def __init__(self, bucket: str, region: str = "us-east-1", endpoint_url: str | None = None):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.client = boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,  # MinIO, LocalStack
        )

    def upload(self, key: str, local_path: str, content_type: str) -> None:
        logger.info("Uploading %s to s3://%s/%s", local_path, self.bucket, key)
        try:
            # upload_file switches to multipart for large files
            self.client.upload_file(
                local_path,
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 upload of {key} failed: {e}") from e

    def object_url(self, key: str) -> str:
        return build_object_url(self.bucket, self.region, key, self.endpoint_url)


def build_object_store(cfg: Settings) -> ObjectStore:
    return S3ObjectStore(cfg.S3_BUCKET, cfg.S3_REGION, cfg.S3_ENDPOINT_URL)
