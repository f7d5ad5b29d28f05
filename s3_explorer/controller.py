from __future__ import annotations
"""Controller layer that binds a connection profile to service operations."""

from .models import BucketInfo, ConnectionProfile, OperationResult, Page, SortOrder, UploadItem
from .services import S3ExplorerService
from .settings import AppSettings
from .store import ObjectStore


class NotConnectedError(RuntimeError):
    """Raised when an S3 operation is attempted before connecting."""


class S3ExplorerController:
    """Coordinates user actions with the :class:`S3ExplorerService`.

    A fresh store is built from the remembered profile for every call; no
    listing state is kept between requests.
    """

    def __init__(
        self,
        service: S3ExplorerService | None = None,
        settings: AppSettings | None = None,
    ):
        self._settings = settings or AppSettings()
        self._service = service or S3ExplorerService(settings=self._settings)
        self._profile: ConnectionProfile | None = None

    @property
    def is_connected(self) -> bool:
        return self._profile is not None

    @property
    def profile(self) -> ConnectionProfile | None:
        return self._profile

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def connect(self, profile: ConnectionProfile) -> list[BucketInfo]:
        buckets = self._service.list_buckets(self._service.create_store(profile))
        self._profile = profile
        return buckets

    def disconnect(self) -> None:
        self._profile = None

    def refresh_buckets(self) -> list[BucketInfo]:
        return self._service.list_buckets(self._store())

    def list_page(
        self,
        *,
        bucket: str,
        prefix: str = "",
        page_size: int | None = None,
        cursor: str | None = None,
        sort_order: SortOrder | str | None = None,
    ) -> Page:
        return self._service.list_page(
            self._store(),
            bucket=bucket,
            prefix=prefix,
            page_size=page_size or self._settings.page_size,
            cursor=cursor,
            sort_order=sort_order or self._settings.sort_order,
        )

    def search(self, *, bucket: str, prefix: str = "", query: str = "") -> Page:
        return self._service.search(self._store(), bucket=bucket, prefix=prefix, query=query)

    def count(self, *, bucket: str, prefix: str = "") -> dict[str, int]:
        return self._service.count_objects(self._store(), bucket=bucket, prefix=prefix)

    def create_folder(self, *, bucket: str, prefix: str, name: str) -> OperationResult:
        return self._service.create_folder(self._store(), bucket=bucket, prefix=prefix, name=name)

    def rename_object(self, *, bucket: str, old_key: str, new_key: str) -> OperationResult:
        return self._service.rename_object(self._store(), bucket=bucket, old_key=old_key, new_key=new_key)

    def upload_file(
        self,
        *,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str | None = None,
    ) -> OperationResult:
        return self._service.upload_file(
            self._store(),
            bucket=bucket,
            key=key,
            body=body,
            content_type=content_type,
        )

    def upload_files(self, *, bucket: str, prefix: str, items: list[UploadItem]) -> OperationResult:
        return self._service.upload_files(self._store(), bucket=bucket, prefix=prefix, items=items)

    def delete_object(self, *, bucket: str, key: str) -> OperationResult:
        return self._service.delete_object(self._store(), bucket=bucket, key=key)

    def delete_objects(self, *, bucket: str, keys: list[str]) -> OperationResult:
        return self._service.delete_objects(self._store(), bucket=bucket, keys=keys)

    def make_public(self, *, bucket: str, key: str) -> OperationResult:
        return self._service.make_public(self._store(), bucket=bucket, key=key)

    def get_download_url(self, *, bucket: str, key: str, expires_in: int | None = None) -> OperationResult:
        return self._service.get_download_url(self._store(), bucket=bucket, key=key, expires_in=expires_in)

    def get_file_content(self, *, bucket: str, key: str) -> OperationResult:
        return self._service.get_file_content(self._store(), bucket=bucket, key=key)

    def _store(self) -> ObjectStore:
        if self._profile is None:
            raise NotConnectedError("Not connected to S3")
        return self._service.create_store(self._profile)
