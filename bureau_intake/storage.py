from __future__ import annotations

from typing import Optional
from urllib.parse import quote

import boto3
from botocore.config import Config

from bureau_intake.config import StorageConfig

ASSET_CACHE_CONTROL = "public, max-age=3600"


class MediaStorage:
    """
    Thin wrapper around S3-compatible storage for mirrored brand assets.

    Keys are namespaced by client and category, so a re-submission of the same
    file lands on the same key and overwrites it.
    """

    def __init__(self, config: StorageConfig, client=None) -> None:
        self.bucket = config.bucket
        self.public_base_url = config.public_base_url
        if client is not None:
            self.client = client
            return

        addressing_style = "path" if config.force_path_style else "auto"
        session = boto3.session.Session()
        self.client = session.client(
            "s3",
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region or "us-east-1",
            config=Config(
                s3={"addressing_style": addressing_style},
                signature_version="s3v4",
            ),
        )

    @staticmethod
    def build_key(*, client_id: object, category: str, filename: str) -> str:
        parts = [str(client_id).strip("/"), category.strip("/"), filename.lstrip("/")]
        return "/".join(part for part in parts if part)

    def upload_bytes(
        self,
        *,
        key: str,
        data: bytes,
        content_type: Optional[str],
        cache_control: Optional[str] = ASSET_CACHE_CONTROL,
    ) -> None:
        kwargs = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
        }
        if content_type:
            kwargs["ContentType"] = content_type
        if cache_control:
            kwargs["CacheControl"] = cache_control
        self.client.put_object(**kwargs)

    def resolve_url(self, key: str) -> str:
        """Public URL when the bucket is served publicly, else the internal path."""
        if self.public_base_url:
            return f"{self.public_base_url}/{quote(key)}"
        return f"{self.bucket}/{key}"
