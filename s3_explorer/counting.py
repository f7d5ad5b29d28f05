from __future__ import annotations
"""Cheap item counts for a prefix, used for pagination display."""
from dataclasses import dataclass
import logging

from botocore.exceptions import BotoCoreError, ClientError

from .store import ObjectStore

LOGGER = logging.getLogger(__name__)

COUNT_PAGE_SIZE = 1000


@dataclass(frozen=True)
class PrefixTally:
    folders: int = 0
    files: int = 0

    @property
    def total(self) -> int:
        return self.folders + self.files


class CountEngine:
    """Walks a prefix without enrichment or sorting and adds up what it sees."""

    def __init__(self, *, page_size: int = COUNT_PAGE_SIZE, delimiter: str = "/"):
        self._page_size = max(int(page_size), 1)
        self._delimiter = delimiter

    def tally(
        self,
        store: ObjectStore,
        *,
        bucket: str,
        prefix: str = "",
        limit: int | None = None,
    ) -> PrefixTally:
        """Count folder groups and files under ``prefix``.

        Stops early once ``limit`` items have been seen, so the result may
        undercount enormous prefixes.

        Raises:
            BotoCoreError | ClientError: when the store cannot be listed.
        """

        folders = 0
        files = 0
        token: str | None = None
        while True:
            result = store.list_group(
                bucket,
                prefix,
                self._delimiter,
                continuation_token=token,
                max_keys=self._page_size,
            )
            folders += len(result.groups)
            files += sum(1 for item in result.items if item.key != prefix)
            token = result.next_token
            if not token:
                break
            if limit is not None and folders + files >= limit:
                LOGGER.debug("Count for '%s/%s' stopped at cap %d", bucket, prefix, limit)
                break
        return PrefixTally(folders=folders, files=files)

    def count(self, store: ObjectStore, *, bucket: str, prefix: str = "") -> int:
        """Total number of folders and files directly under ``prefix``; 0 on failure."""

        try:
            return self.tally(store, bucket=bucket, prefix=prefix).total
        except (ClientError, BotoCoreError):
            LOGGER.exception("Failed to count objects in '%s' under '%s'", bucket, prefix)
            return 0
