"""S3-compatible object storage (AWS S3, MinIO, Ceph, ...)."""

from __future__ import annotations

import logging
import mimetypes
from typing import Any
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from miniblog.posts.models import Post
from miniblog.posts.xmlformat import dump_post
from miniblog.storage.base import POST_SUFFIX, StorageBackend

logger = logging.getLogger(__name__)

ASSETS_PREFIX = "files/"


def make_s3_client(endpoint_url: str | None = None) -> Any:
    """Create a boto3 S3 client using path-style addressing."""
    config = Config(s3={"addressing_style": "path"})
    kwargs: dict[str, Any] = {"config": config}
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return boto3.client("s3", **kwargs)


class S3Storage(StorageBackend):
    """Posts as ``<prefix><id>.xml`` objects, uploads under ``<prefix>files/``.

    The bucket is created on first use if it does not exist.  Public read
    access is a bucket policy concern; asset URLs assume it is granted.
    """

    def __init__(
        self,
        bucket: str,
        *,
        prefix: str = "",
        endpoint_url: str | None = None,
        public_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        if not bucket:
            raise ValueError("S3 storage needs a bucket name")
        self.bucket = bucket
        self.prefix = f"{prefix.strip('/')}/" if prefix.strip("/") else ""
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self.public_url = public_url.rstrip("/") if public_url else None
        self.client = client if client is not None else make_s3_client(self.endpoint_url)
        self._bucket_ready = False

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code not in ("404", "NoSuchBucket", "NotFound"):
                raise
            logger.info("Creating bucket %s", self.bucket)
            kwargs: dict[str, Any] = {"Bucket": self.bucket}
            region = self.client.meta.region_name
            # us-east-1 rejects an explicit LocationConstraint
            if region and region != "us-east-1":
                kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
            self.client.create_bucket(**kwargs)
        self._bucket_ready = True

    def _key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def object_url(self, key: str) -> str:
        """Absolute URL of an object."""
        quoted = quote(key)
        if self.public_url:
            return f"{self.public_url}/{quoted}"
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.amazonaws.com/{quoted}"

    def list_post_sources(self) -> list[str]:
        self._ensure_bucket()
        keys: list[str] = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix):
            for obj in page.get("Contents", []):
                key = obj["Key"]
                # only documents directly under the prefix; uploads live deeper
                if key.endswith(POST_SUFFIX) and "/" not in key[len(self.prefix):]:
                    keys.append(key)
        return keys

    def read_post_source(self, locator: str) -> str:
        response = self.client.get_object(Bucket=self.bucket, Key=locator)
        return response["Body"].read().decode("utf-8")

    def save(self, post: Post) -> str:
        self._ensure_bucket()
        key = self._key(self.document_name(post))
        self.touch(post)
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=dump_post(post).encode("utf-8"),
            ContentType="application/xml",
        )
        logger.debug("Uploaded s3://%s/%s", self.bucket, key)
        return key

    def delete(self, post: Post) -> None:
        self._ensure_bucket()
        key = self._key(self.document_name(post))
        # S3 treats deleting a missing key as success
        self.client.delete_object(Bucket=self.bucket, Key=key)
        logger.debug("Deleted s3://%s/%s", self.bucket, key)

    def save_asset(self, data: bytes, file_name: str, suffix: str | None = None) -> str:
        self._ensure_bucket()
        name = self.asset_name(file_name, suffix)
        key = self._key(f"{ASSETS_PREFIX}{name}")
        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        return self.object_url(key)
