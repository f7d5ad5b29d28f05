from __future__ import annotations
"""UI-agnostic helpers for formatting entries and composing keys."""
from datetime import datetime

from .models import Entry


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    value = float(max(size, 0))
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def format_last_modified(last_modified: object) -> str:
    if not last_modified:
        return "-"
    if isinstance(last_modified, datetime):
        return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or last_modified.isoformat()
    return str(last_modified)


def format_visibility(entry: Entry) -> str:
    if entry.is_folder or entry.is_public is None:
        return ""
    return "public" if entry.is_public else "private"


def format_entry_row(entry: Entry) -> str:
    """Single tab-separated line for terminal listings."""
    if entry.is_folder:
        return "\t".join(["DIR", "-", "-", entry.name + "/", ""]).rstrip()
    return "\t".join(
        [
            "FILE",
            format_size(entry.size),
            format_last_modified(entry.last_modified),
            entry.name,
            format_visibility(entry),
        ]
    ).rstrip()


def compose_s3_key(prefix: str, name: str) -> str:
    key_name = name.strip()
    if not key_name:
        raise ValueError("Object name cannot be empty")
    cleaned_prefix = prefix.strip().lstrip("/")
    if cleaned_prefix and not cleaned_prefix.endswith("/"):
        cleaned_prefix += "/"
    return f"{cleaned_prefix}{key_name}" if cleaned_prefix else key_name


def parent_prefix(key: str) -> str:
    """Prefix of the folder that contains ``key`` (``""`` at the bucket root)."""
    cleaned = key.rstrip("/")
    if "/" not in cleaned:
        return ""
    return cleaned.rsplit("/", 1)[0] + "/"
