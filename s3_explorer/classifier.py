from __future__ import annotations
"""Turn raw listing records into folder/file entries."""
import unicodedata

from .models import Entry, EntryKind, ObjectRecord


def entry_name(key: str, delimiter: str = "/") -> str:
    """Last path segment of ``key``, ignoring a trailing delimiter."""
    if not delimiter:
        return key
    trimmed = key[: -len(delimiter)] if key.endswith(delimiter) else key
    return trimmed.rsplit(delimiter, 1)[-1]


def entry_extension(name: str) -> str | None:
    if "." not in name:
        return None
    return name.rsplit(".", 1)[-1]


def classify_folder(group_prefix: str, delimiter: str = "/") -> Entry:
    return Entry(
        key=group_prefix,
        name=entry_name(group_prefix, delimiter),
        kind=EntryKind.FOLDER,
    )


def classify_file(record: ObjectRecord, delimiter: str = "/") -> Entry:
    name = entry_name(record.key, delimiter)
    return Entry(
        key=record.key,
        name=name,
        kind=EntryKind.FILE,
        last_modified=record.last_modified,
        size=record.size,
        content_tag=record.content_tag,
        extension=entry_extension(name),
    )


def name_sort_key(name: str) -> tuple[str, str]:
    """Collation key approximating a locale-aware comparison.

    Accents and case are folded for the primary ordering; the raw name breaks ties
    so the ordering stays total.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return (folded, name)


def matches_query(name: str, query: str) -> bool:
    return query.casefold() in name.casefold()
