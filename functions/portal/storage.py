"""
Object storage for uploaded recipient media (S3-compatible) and an in-memory
test double.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import boto3
from botocore.config import Config


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        ...

    def presign_put(
        self, path: str, expires_in: int = 3600, content_type: str | None = None
    ) -> str:
        ...

    def delete_prefix(self, prefix: str) -> int:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = field(default_factory=dict)

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return f"{self.base_url}/{path}?op=get&expires={expires_in}"

    def presign_put(
        self, path: str, expires_in: int = 3600, content_type: str | None = None
    ) -> str:
        return f"{self.base_url}/{path}?op=put&expires={expires_in}"

    def delete_prefix(self, prefix: str) -> int:
        doomed = [key for key in self.stored_objects if key.startswith(prefix)]
        for key in doomed:
            del self.stored_objects[key]
        return len(doomed)


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client (AWS S3, Supabase storage, COS, MinIO).
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=expires_in,
        )

    def presign_put(
        self, path: str, expires_in: int = 3600, content_type: str | None = None
    ) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="put_object",
            Params={
                "Bucket": self.bucket,
                "Key": path,
                "ContentType": content_type or "application/octet-stream",
            },
            ExpiresIn=expires_in,
        )

    def delete_prefix(self, prefix: str) -> int:
        deleted = 0
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            keys = [{"Key": item["Key"]} for item in page.get("Contents", [])]
            if not keys:
                continue
            self._client.delete_objects(
                Bucket=self.bucket, Delete={"Objects": keys, "Quiet": True}
            )
            deleted += len(keys)
        return deleted
