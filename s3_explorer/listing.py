from __future__ import annotations
"""Paginated folder-first listings on top of forward-only S3 pagination."""
from dataclasses import dataclass, field
import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from .classifier import classify_file, classify_folder, name_sort_key
from .counting import CountEngine
from .cursor import decode_cursor, encode_cursor
from .errors import ListingFailed
from .models import CursorPhase, CursorState, Entry, Page, SortOrder, DEFAULT_SORT_ORDER
from .store import ObjectStore
from .visibility import DEFAULT_BATCH_SIZE, resolve_visibility

LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
ENUMERATION_CAP = 2000
LIST_PAGE_SIZE = 1000


@dataclass
class _Walk:
    folders: list[Entry] = field(default_factory=list)
    files: list[Entry] = field(default_factory=list)
    # continuation token where the file window stopped; None once exhausted
    window_end_token: Optional[str] = None
    requests: int = 0


def _timestamp(entry: Entry) -> float:
    if entry.last_modified is None:
        return float("-inf")
    try:
        return entry.last_modified.timestamp()
    except (AttributeError, OverflowError, OSError, ValueError):
        return float("-inf")


def sort_files(files: list[Entry], sort_order: SortOrder) -> list[Entry]:
    """Order file entries; entries without a timestamp sort as the oldest."""
    if sort_order.by_name:
        return sorted(files, key=lambda entry: name_sort_key(entry.name), reverse=sort_order.descending)
    return sorted(files, key=_timestamp, reverse=sort_order.descending)


def sort_folders(folders: list[Entry]) -> list[Entry]:
    return sorted(folders, key=lambda entry: name_sort_key(entry.name))


class ListingEngine:
    """Builds one page of a prefix listing per request.

    Folders always come first, in ascending name order. Listings are read in
    windows of about ``enumeration_cap`` entries starting at a backend
    continuation token; each window's files are sorted as a whole, and the
    cursor remembers where the window starts plus how much of it has been
    shown. Folders are only discovered in the first window, so on very large
    prefixes folder groups listed after the cap are not shown.
    """

    def __init__(
        self,
        *,
        enumeration_cap: int = ENUMERATION_CAP,
        acl_batch_size: int = DEFAULT_BATCH_SIZE,
        list_page_size: int = LIST_PAGE_SIZE,
        delimiter: str = "/",
        count_engine: CountEngine | None = None,
    ):
        self._enumeration_cap = max(int(enumeration_cap), 1)
        self._acl_batch_size = max(int(acl_batch_size), 1)
        self._list_page_size = max(int(list_page_size), 1)
        self._delimiter = delimiter
        self._count_engine = count_engine or CountEngine(delimiter=delimiter)

    @property
    def delimiter(self) -> str:
        return self._delimiter

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
        """Return the page of entries that ``cursor`` points at.

        Raises:
            ValueError: when ``page_size`` is below 1 or ``sort_order`` is unknown.
            ListingFailed: when the store cannot be listed.
        """

        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        order = SortOrder.parse(sort_order)
        state = decode_cursor(cursor)
        LOGGER.debug(
            "Listing '%s' prefix '%s' (size=%d, order=%s, state=%s)",
            bucket,
            prefix,
            page_size,
            order.value,
            state,
        )
        try:
            page = self._build_page(store, bucket, prefix, page_size, state, order)
        except ClientError as exc:
            if not state.backend_token:
                raise ListingFailed(str(exc)) from exc
            # the backend refused the cursor's continuation token: start over
            LOGGER.debug("Restarting listing of '%s' prefix '%s': %s", bucket, prefix, exc)
            try:
                page = self._build_page(store, bucket, prefix, page_size, CursorState(), order)
            except (ClientError, BotoCoreError) as retry_exc:
                raise ListingFailed(str(retry_exc)) from retry_exc
        except BotoCoreError as exc:
            raise ListingFailed(str(exc)) from exc
        LOGGER.debug(
            "Listed %d entr(ies) for '%s' prefix '%s' (more=%s)",
            len(page.entries),
            bucket,
            prefix,
            page.has_more,
        )
        return page

    def _build_page(
        self,
        store: ObjectStore,
        bucket: str,
        prefix: str,
        page_size: int,
        state: CursorState,
        order: SortOrder,
    ) -> Page:
        if state.phase is CursorPhase.FOLDERS:
            walk = self._walk(store, bucket, prefix, start_token=None, collect_folders=True)
            folders = sort_folders(walk.folders)
            folder_offset = state.folder_offset
            window_start: str | None = None
            file_offset = 0
            folder_total = len(folders)
        else:
            walk = self._walk(
                store,
                bucket,
                prefix,
                start_token=state.backend_token,
                collect_folders=False,
            )
            folders = []
            folder_offset = 0
            window_start = state.backend_token
            file_offset = state.file_offset
            folder_total = state.folder_offset

        page_folders = folders[folder_offset : folder_offset + page_size]
        remaining = page_size - len(page_folders)
        emitted_folders = folder_offset + len(page_folders)
        page_files: list[Entry] = []
        next_state: CursorState | None = None

        if emitted_folders < len(folders):
            next_state = CursorState(folder_offset=emitted_folders, phase=CursorPhase.FOLDERS)
        else:
            window = sort_files(walk.files, order)
            page_files = window[file_offset : file_offset + remaining]
            consumed = file_offset + len(page_files)
            if consumed < len(window):
                next_state = CursorState(
                    folder_offset=folder_total,
                    phase=CursorPhase.FILES,
                    backend_token=window_start,
                    file_offset=consumed,
                )
            elif walk.window_end_token:
                next_state = CursorState(
                    folder_offset=folder_total,
                    phase=CursorPhase.FILES,
                    backend_token=walk.window_end_token,
                )

        if page_files:
            page_files = resolve_visibility(
                store,
                bucket,
                page_files,
                batch_size=self._acl_batch_size,
            )

        total_count: int | None = None
        if state.is_initial:
            tally = self._count_engine.tally(
                store,
                bucket=bucket,
                prefix=prefix,
                limit=self._enumeration_cap,
            )
            total_count = len(folders) + tally.files

        return Page(
            entries=page_folders + page_files,
            cursor=encode_cursor(next_state) if next_state else None,
            total_count=total_count,
        )

    def _walk(
        self,
        store: ObjectStore,
        bucket: str,
        prefix: str,
        *,
        start_token: str | None,
        collect_folders: bool,
    ) -> _Walk:
        """Read one window of backend pages from ``start_token``.

        Folder groups and objects both count towards ``enumeration_cap``, so
        a walk from a given token always stops at the same place whether or
        not folders are being collected.
        """

        walk = _Walk()
        seen_folders: dict[str, Entry] = {}
        cap = self._enumeration_cap
        token = start_token
        seen = 0

        while True:
            result = store.list_group(
                bucket,
                prefix,
                self._delimiter,
                continuation_token=token,
                max_keys=self._list_page_size,
            )
            walk.requests += 1
            seen += len(result.groups) + len(result.items)
            if collect_folders:
                for group in result.groups:
                    if group != prefix and group not in seen_folders:
                        seen_folders[group] = classify_folder(group, self._delimiter)
            walk.files.extend(
                classify_file(item, self._delimiter)
                for item in result.items
                if item.key != prefix
            )
            token = result.next_token
            if not token:
                break
            if seen >= cap:
                walk.window_end_token = token
                break

        walk.folders = list(seen_folders.values())
        LOGGER.debug(
            "Walked '%s' prefix '%s' in %d request(s): %d folder(s), %d file(s)",
            bucket,
            prefix,
            walk.requests,
            len(walk.folders),
            len(walk.files),
        )
        return walk
