from __future__ import annotations
"""Substring search across every entry directly under a prefix."""
import logging

from botocore.exceptions import BotoCoreError, ClientError

from .classifier import classify_file, classify_folder, matches_query
from .errors import ListingFailed
from .listing import ListingEngine, sort_folders
from .models import Entry, Page
from .store import ObjectStore
from .visibility import DEFAULT_BATCH_SIZE, resolve_visibility

LOGGER = logging.getLogger(__name__)

DEFAULT_RESULT_LIMIT = 100
SEARCH_PAGE_SIZE = 1000


class SearchEngine:
    """Walks the whole prefix and returns one bounded, unpaginated result set."""

    def __init__(
        self,
        listing: ListingEngine | None = None,
        *,
        result_limit: int = DEFAULT_RESULT_LIMIT,
        batch_size: int = DEFAULT_BATCH_SIZE,
        page_size: int = SEARCH_PAGE_SIZE,
    ):
        self._listing = listing or ListingEngine()
        self._result_limit = max(int(result_limit), 0)
        self._batch_size = max(int(batch_size), 1)
        self._page_size = max(int(page_size), 1)

    def search(
        self,
        store: ObjectStore,
        *,
        bucket: str,
        prefix: str = "",
        query: str = "",
    ) -> Page:
        """Case-insensitive name search; a blank query returns the first listing page.

        Raises:
            ListingFailed: when the store cannot be listed.
        """

        if not (query or "").strip():
            return self._listing.list_page(store, bucket=bucket, prefix=prefix)

        delimiter = self._listing.delimiter
        folders: dict[str, Entry] = {}
        files: list[Entry] = []
        token: str | None = None
        requests = 0
        try:
            while True:
                result = store.list_group(
                    bucket,
                    prefix,
                    delimiter,
                    continuation_token=token,
                    max_keys=self._page_size,
                )
                requests += 1
                for group in result.groups:
                    if group in folders or group == prefix:
                        continue
                    folder = classify_folder(group, delimiter)
                    if matches_query(folder.name, query):
                        folders[group] = folder
                for item in result.items:
                    if item.key == prefix:
                        continue
                    entry = classify_file(item, delimiter)
                    if matches_query(entry.name, query):
                        files.append(entry)
                token = result.next_token
                if not token:
                    break

            matched_files = files[: self._result_limit]
            matched_files = resolve_visibility(
                store,
                bucket,
                matched_files,
                batch_size=self._batch_size,
            )
        except (ClientError, BotoCoreError) as exc:
            raise ListingFailed(str(exc)) from exc

        matched_folders = sort_folders(list(folders.values()))
        LOGGER.debug(
            "Search '%s' in '%s' prefix '%s' scanned %d page(s): %d folder(s), %d file(s) (of %d)",
            query,
            bucket,
            prefix,
            requests,
            len(matched_folders),
            len(matched_files),
            len(files),
        )
        return Page(
            entries=matched_folders + matched_files,
            cursor=None,
            total_count=len(matched_folders) + len(matched_files),
        )
