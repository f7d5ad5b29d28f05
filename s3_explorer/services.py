from __future__ import annotations
"""Business logic for browsing and modifying objects in S3."""
import logging
import re
from typing import Callable

from botocore.exceptions import BotoCoreError, ClientError

from .counting import CountEngine
from .errors import DuplicateNameError, ValidationError
from .listing import DEFAULT_PAGE_SIZE, ListingEngine
from .models import (
    DEFAULT_SORT_ORDER,
    BucketInfo,
    ConnectionProfile,
    OperationResult,
    OperationStatus,
    Page,
    SortOrder,
    UploadItem,
)
from .search import SearchEngine
from .settings import AppSettings
from .store import Boto3ObjectStore, ObjectStore, create_client
from .ui_utils import compose_s3_key

LOGGER = logging.getLogger(__name__)

INVALID_FOLDER_CHARACTERS = "\\^`><{}[]#%~|/"
_INVALID_FOLDER_PATTERN = re.compile(r"[\\^`><{}\[\]#%~|/]")


def validate_folder_name(name: str) -> str:
    """Return the cleaned folder name.

    Raises:
        ValidationError: when the name is blank or uses a reserved character.
    """

    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Folder name cannot be empty")
    found = sorted(set(_INVALID_FOLDER_PATTERN.findall(cleaned)), key=INVALID_FOLDER_CHARACTERS.index)
    if found:
        raise ValidationError(
            "Folder name contains invalid characters: "
            + " ".join(found)
            + " (not allowed: "
            + " ".join(INVALID_FOLDER_CHARACTERS)
            + ")"
        )
    return cleaned


def _format_error(exc: Exception) -> str:
    return str(exc)


class S3ExplorerService:
    """Exposes listing and object operations over an explicitly passed store.

    Read operations raise :class:`~s3_explorer.errors.ListingFailed` on
    backend failures. Write operations never raise for backend problems; they
    report an :class:`OperationResult` instead.
    """

    def __init__(
        self,
        client_factory: Callable[..., object] | None = None,
        *,
        settings: AppSettings | None = None,
        listing: ListingEngine | None = None,
        search: SearchEngine | None = None,
        counter: CountEngine | None = None,
    ):
        settings = settings or AppSettings()
        self._client_factory = client_factory
        self._counter = counter or CountEngine()
        self._listing = listing or ListingEngine(
            enumeration_cap=settings.enumeration_cap,
            acl_batch_size=settings.acl_batch_size,
            count_engine=self._counter,
        )
        self._search = search or SearchEngine(
            self._listing,
            result_limit=settings.search_result_limit,
            batch_size=settings.acl_batch_size,
        )
        self._presign_ttl = settings.presign_ttl

    def create_store(self, profile: ConnectionProfile) -> Boto3ObjectStore:
        return Boto3ObjectStore(create_client(profile, self._client_factory))

    def list_buckets(self, store: ObjectStore) -> list[BucketInfo]:
        """Return the available buckets.

        Raises:
            BotoCoreError | ClientError: when unable to connect or list buckets.
        """

        return store.list_buckets()

    def list_page(
        self,
        store: ObjectStore,
        *,
        bucket: str,
        prefix: str = "",
        page_size: int = DEFAULT_PAGE_SIZE,
        cursor: str | None = None,
        sort_order: SortOrder | str = DEFAULT_SORT_ORDER,
    ) -> Page:
        return self._listing.list_page(
            store,
            bucket=bucket,
            prefix=prefix,
            page_size=page_size,
            cursor=cursor,
            sort_order=sort_order,
        )

    def search(self, store: ObjectStore, *, bucket: str, prefix: str = "", query: str = "") -> Page:
        return self._search.search(store, bucket=bucket, prefix=prefix, query=query)

    def count_objects(self, store: ObjectStore, *, bucket: str, prefix: str = "") -> dict[str, int]:
        return {"count": self._counter.count(store, bucket=bucket, prefix=prefix)}

    def create_folder(self, store: ObjectStore, *, bucket: str, prefix: str, name: str) -> OperationResult:
        """Create an empty placeholder object for ``prefix + name + '/'``."""

        try:
            folder_name = validate_folder_name(name)
        except ValidationError as exc:
            return OperationResult.invalid(_format_error(exc))
        key = compose_s3_key(prefix, folder_name) + "/"

        try:
            existing = store.list_group(bucket, key, "/", max_keys=1)
            if existing.groups or existing.items:
                raise DuplicateNameError("A folder or file with this name already exists")
            store.put_object(bucket, key, b"")
        except DuplicateNameError as exc:
            return OperationResult.invalid(_format_error(exc))
        except (ClientError, BotoCoreError) as exc:
            LOGGER.exception("Failed to create folder '%s' in '%s'", key, bucket)
            return OperationResult.backend_error(_format_error(exc))
        LOGGER.debug("Created folder '%s' in '%s'", key, bucket)
        return OperationResult.success(value=key)

    def rename_object(self, store: ObjectStore, *, bucket: str, old_key: str, new_key: str) -> OperationResult:
        """Copy ``old_key`` to ``new_key`` and delete the original.

        The two steps are not atomic. When the delete fails after the copy
        succeeded the result has status ``partial`` and both keys exist.
        """

        if not old_key or not new_key or not new_key.strip():
            return OperationResult.invalid("Object key cannot be empty")
        if old_key == new_key:
            return OperationResult.invalid("The new name must differ from the current name")

        try:
            store.copy_object(bucket, bucket, old_key, new_key)
        except (ClientError, BotoCoreError) as exc:
            LOGGER.exception("Failed to copy '%s' to '%s' in '%s'", old_key, new_key, bucket)
            return OperationResult.backend_error(_format_error(exc))

        try:
            store.delete_object(bucket, old_key)
        except (ClientError, BotoCoreError) as exc:
            LOGGER.exception("Rename left '%s' and '%s' in '%s'", old_key, new_key, bucket)
            return OperationResult(
                OperationStatus.PARTIAL,
                message=(
                    f"Copied '{old_key}' to '{new_key}' but could not delete the original: "
                    f"{_format_error(exc)}"
                ),
                value=new_key,
            )
        return OperationResult.success(value=new_key)

    def upload_file(
        self,
        store: ObjectStore,
        *,
        bucket: str,
        key: str,
        body: bytes | None,
        content_type: str | None = None,
    ) -> OperationResult:
        if body is None:
            return OperationResult.invalid("No file provided")
        if not key or not key.strip():
            return OperationResult.invalid("Object key cannot be empty")
        try:
            store.put_object(bucket, key, body, content_type)
        except (ClientError, BotoCoreError) as exc:
            LOGGER.exception("Failed to upload '%s' to '%s'", key, bucket)
            return OperationResult.backend_error(_format_error(exc))
        return OperationResult.success(value=key)

    def upload_files(
        self,
        store: ObjectStore,
        *,
        bucket: str,
        prefix: str,
        items: list[UploadItem],
    ) -> OperationResult:
        """Upload every item under ``prefix``, collecting per-file failures."""

        failures: dict[str, str] = {}
        uploaded: list[str] = []
        for item in items:
            try:
                key = compose_s3_key(prefix, item.name)
            except ValueError as exc:
                failures[item.name] = _format_error(exc)
                continue
            result = self.upload_file(
                store,
                bucket=bucket,
                key=key,
                body=item.body,
                content_type=item.content_type,
            )
            if result.ok:
                uploaded.append(key)
            else:
                failures[key] = result.message
        return self._batch_result("upload", uploaded, failures)

    def delete_object(self, store: ObjectStore, *, bucket: str, key: str) -> OperationResult:
        try:
            store.delete_object(bucket, key)
        except (ClientError, BotoCoreError) as exc:
            LOGGER.exception("Failed to delete '%s' from '%s'", key, bucket)
            return OperationResult.backend_error(_format_error(exc))
        return OperationResult.success(value=key)

    def delete_objects(self, store: ObjectStore, *, bucket: str, keys: list[str]) -> OperationResult:
        keys = [key for key in dict.fromkeys(keys) if key]
        if not keys:
            return OperationResult.success(value=[])
        try:
            failures = store.delete_objects(bucket, keys)
        except (ClientError, BotoCoreError) as exc:
            LOGGER.exception("Bulk delete of %d key(s) failed in '%s'", len(keys), bucket)
            return OperationResult.backend_error(_format_error(exc))
        deleted = [key for key in keys if key not in failures]
        return self._batch_result("delete", deleted, failures)

    def make_public(self, store: ObjectStore, *, bucket: str, key: str) -> OperationResult:
        try:
            store.make_public(bucket, key)
        except (ClientError, BotoCoreError) as exc:
            LOGGER.exception("Failed to make '%s' public in '%s'", key, bucket)
            return OperationResult.backend_error(_format_error(exc))
        return OperationResult.success(value=key)

    def get_download_url(
        self,
        store: ObjectStore,
        *,
        bucket: str,
        key: str,
        expires_in: int | None = None,
    ) -> OperationResult:
        ttl = self._presign_ttl if expires_in is None else expires_in
        if ttl <= 0:
            return OperationResult.invalid("expires_in must be greater than zero")
        try:
            url = store.presign_download(bucket, key, ttl)
        except (ClientError, BotoCoreError) as exc:
            LOGGER.exception("Failed to presign '%s' in '%s'", key, bucket)
            return OperationResult.backend_error(_format_error(exc))
        return OperationResult.success(value=url)

    def get_file_content(self, store: ObjectStore, *, bucket: str, key: str) -> OperationResult:
        try:
            body = store.get_object(bucket, key)
        except (ClientError, BotoCoreError) as exc:
            LOGGER.exception("Failed to fetch '%s' from '%s'", key, bucket)
            return OperationResult.backend_error(_format_error(exc))
        return OperationResult.success(value=body.decode("utf-8", errors="replace"))

    def _batch_result(self, action: str, done: list[str], failures: dict[str, str]) -> OperationResult:
        if not failures:
            return OperationResult.success(value=done)
        LOGGER.warning("%s failed for %d of %d item(s)", action.capitalize(), len(failures), len(done) + len(failures))
        status = OperationStatus.PARTIAL if done else OperationStatus.BACKEND_ERROR
        return OperationResult(
            status,
            message=f"Failed to {action} {len(failures)} of {len(done) + len(failures)} item(s)",
            value=done,
            failures=failures,
        )
