from __future__ import annotations
"""Object store adapter wrapping a boto3 S3 client."""
import logging
from typing import Callable, Iterable, Protocol

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .models import BucketInfo, ConnectionProfile, ListGroupResult, ObjectRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"
DELETE_BATCH_SIZE = 1000
PUBLIC_GROUP_URI = "http://acs.amazonaws.com/groups/global/AllUsers"
PUBLIC_READ_PERMISSIONS = frozenset({"READ", "FULL_CONTROL"})


class ObjectStore(Protocol):
    """Capabilities the listing engines and object operations rely on.

    Implementations raise ``botocore`` ``ClientError``/``BotoCoreError`` on
    connectivity or authorization problems.
    """

    def list_group(
        self,
        bucket: str,
        prefix: str,
        delimiter: str = "/",
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListGroupResult:
        """Return one page of folder groups and objects under ``prefix``."""

    def check_public_read(self, bucket: str, key: str) -> bool:
        """Return True when anonymous users may read the object."""

    def put_object(self, bucket: str, key: str, body: bytes, content_type: str | None = None) -> None:
        """Create or overwrite an object."""

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object; deleting a missing key is not an error."""

    def delete_objects(self, bucket: str, keys: list[str]) -> dict[str, str]:
        """Delete many objects, returning ``{key: message}`` for failures."""

    def copy_object(self, bucket: str, source_bucket: str, source_key: str, dest_key: str) -> None:
        """Server-side copy of ``source_bucket/source_key`` to ``bucket/dest_key``."""

    def get_object(self, bucket: str, key: str) -> bytes:
        """Return the object body."""

    def presign_download(self, bucket: str, key: str, ttl_seconds: int) -> str:
        """Return a presigned GET URL."""

    def make_public(self, bucket: str, key: str) -> None:
        """Grant anonymous read access to the object."""

    def list_buckets(self) -> list[BucketInfo]:
        """Return the buckets visible to the credentials."""


def create_client(
    profile: ConnectionProfile,
    client_factory: Callable[..., object] | None = None,
):
    """Build an S3 client for ``profile``.

    Custom endpoints (R2, Spaces, MinIO...) get path-style addressing.
    """

    config_kwargs: dict[str, object] = {"signature_version": "s3v4"}
    if profile.endpoint_url:
        config_kwargs["s3"] = {"addressing_style": "path"}
    factory = client_factory or boto3.client
    return factory(
        "s3",
        endpoint_url=profile.endpoint_url or None,
        aws_access_key_id=profile.access_key,
        aws_secret_access_key=profile.secret_key,
        region_name=profile.region or DEFAULT_REGION,
        config=Config(**config_kwargs),
    )


def _chunks(items: list[str], size: int) -> Iterable[list[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class Boto3ObjectStore:
    """:class:`ObjectStore` backed by a boto3 S3 client."""

    def __init__(self, client):
        self._client = client

    @property
    def client(self):
        return self._client

    def list_group(
        self,
        bucket: str,
        prefix: str,
        delimiter: str = "/",
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListGroupResult:
        list_params: dict[str, object] = {"Bucket": bucket}
        if prefix:
            list_params["Prefix"] = prefix
        if delimiter:
            list_params["Delimiter"] = delimiter
        if continuation_token:
            list_params["ContinuationToken"] = continuation_token
        if max_keys:
            list_params["MaxKeys"] = max_keys

        response = self._client.list_objects_v2(**list_params)
        groups = [
            common["Prefix"]
            for common in response.get("CommonPrefixes") or []
            if common.get("Prefix")
        ]
        items = [
            ObjectRecord(
                key=obj["Key"],
                last_modified=obj.get("LastModified"),
                size=obj.get("Size"),
                content_tag=obj.get("ETag"),
            )
            for obj in response.get("Contents") or []
            if obj.get("Key")
        ]
        next_token = response.get("NextContinuationToken")
        if not response.get("IsTruncated", bool(next_token)):
            next_token = None
        return ListGroupResult(groups=groups, items=items, next_token=next_token or None)

    def check_public_read(self, bucket: str, key: str) -> bool:
        response = self._client.get_object_acl(Bucket=bucket, Key=key)
        for grant in response.get("Grants") or []:
            grantee = grant.get("Grantee") or {}
            if grantee.get("URI") == PUBLIC_GROUP_URI and grant.get("Permission") in PUBLIC_READ_PERMISSIONS:
                return True
        return False

    def put_object(self, bucket: str, key: str, body: bytes, content_type: str | None = None) -> None:
        params: dict[str, object] = {"Bucket": bucket, "Key": key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        self._client.put_object(**params)

    def delete_object(self, bucket: str, key: str) -> None:
        self._client.delete_object(Bucket=bucket, Key=key)

    def delete_objects(self, bucket: str, keys: list[str]) -> dict[str, str]:
        failures: dict[str, str] = {}
        for batch in _chunks(list(keys), DELETE_BATCH_SIZE):
            try:
                response = self._client.delete_objects(
                    Bucket=bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as exc:
                LOGGER.warning("Bulk delete batch of %d key(s) failed in '%s': %s", len(batch), bucket, exc)
                failures.update({key: str(exc) for key in batch})
                continue
            for error in response.get("Errors") or []:
                failures[error.get("Key", "")] = error.get("Message") or error.get("Code") or "Delete failed"
        return failures

    def copy_object(self, bucket: str, source_bucket: str, source_key: str, dest_key: str) -> None:
        self._client.copy_object(
            Bucket=bucket,
            Key=dest_key,
            CopySource={"Bucket": source_bucket, "Key": source_key},
        )

    def get_object(self, bucket: str, key: str) -> bytes:
        response = self._client.get_object(Bucket=bucket, Key=key)
        body = response.get("Body")
        if body is None:
            return b""
        return body.read()

    def presign_download(self, bucket: str, key: str, ttl_seconds: int) -> str:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be greater than zero")
        return self._client.generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=ttl_seconds,
        )

    def make_public(self, bucket: str, key: str) -> None:
        self._client.put_object_acl(Bucket=bucket, Key=key, ACL="public-read")

    def list_buckets(self) -> list[BucketInfo]:
        response = self._client.list_buckets()
        return [
            BucketInfo(name=bucket.get("Name") or "unknown", creation_date=bucket.get("CreationDate"))
            for bucket in response.get("Buckets", [])
        ]
