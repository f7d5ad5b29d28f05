from __future__ import annotations
"""Batched public/private lookups for file entries."""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
import logging

from botocore.exceptions import BotoCoreError, ClientError

from .models import Entry
from .store import ObjectStore

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


def _check_public(store: ObjectStore, bucket: str, key: str) -> bool:
    try:
        return bool(store.check_public_read(bucket, key))
    except (ClientError, BotoCoreError) as exc:
        LOGGER.debug("ACL lookup failed for '%s/%s': %s", bucket, key, exc)
        return False


def resolve_visibility(
    store: ObjectStore,
    bucket: str,
    entries: list[Entry],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> list[Entry]:
    """Return ``entries`` with ``is_public`` filled in for every file.

    At most ``batch_size`` lookups are in flight at once. Folders pass through
    untouched and a failed lookup marks the file as private.
    """

    batch_size = max(int(batch_size), 1)
    resolved = list(entries)
    pending = [idx for idx, entry in enumerate(resolved) if not entry.is_folder]
    if not pending:
        return resolved

    with ThreadPoolExecutor(max_workers=min(batch_size, len(pending))) as executor:
        for start in range(0, len(pending), batch_size):
            batch = pending[start : start + batch_size]
            futures = {
                idx: executor.submit(_check_public, store, bucket, resolved[idx].key)
                for idx in batch
            }
            for idx, future in futures.items():
                resolved[idx] = replace(resolved[idx], is_public=future.result())
    LOGGER.debug("Resolved visibility for %d file(s) in '%s'", len(pending), bucket)
    return resolved
