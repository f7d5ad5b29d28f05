from __future__ import annotations
"""Data models representing S3 listings."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class EntryKind(str, Enum):
    FOLDER = "folder"
    FILE = "file"


class SortOrder(str, Enum):
    """Ordering applied to the file block of a listing."""

    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"

    @classmethod
    def parse(cls, value: "str | SortOrder | None") -> "SortOrder":
        if value is None:
            return DEFAULT_SORT_ORDER
        if isinstance(value, SortOrder):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown sort order '{value}'") from None

    @property
    def by_name(self) -> bool:
        return self in (SortOrder.NAME_ASC, SortOrder.NAME_DESC)

    @property
    def descending(self) -> bool:
        return self in (SortOrder.NAME_DESC, SortOrder.DATE_DESC)


DEFAULT_SORT_ORDER = SortOrder.DATE_DESC


class CursorPhase(str, Enum):
    FOLDERS = "folders"
    FILES = "files"


@dataclass(frozen=True)
class CursorState:
    """Everything needed to resume a listing; lives only inside cursor tokens."""

    folder_offset: int = 0
    phase: CursorPhase = CursorPhase.FOLDERS
    backend_token: Optional[str] = None
    file_offset: int = 0

    @property
    def is_initial(self) -> bool:
        return self == CursorState()


@dataclass
class ObjectRecord:
    """A single object as returned by a delimited list call."""

    key: str
    last_modified: Optional[datetime] = None
    size: Optional[int] = None
    content_tag: Optional[str] = None


@dataclass
class ListGroupResult:
    """One backend page of a prefix/delimiter listing."""

    groups: list[str] = field(default_factory=list)
    items: list[ObjectRecord] = field(default_factory=list)
    next_token: Optional[str] = None


@dataclass
class Entry:
    """A folder or file shown in a listing."""

    key: str
    name: str
    kind: EntryKind
    last_modified: Optional[datetime] = None
    size: Optional[int] = None
    content_tag: Optional[str] = None
    extension: Optional[str] = None
    is_public: Optional[bool] = None

    @property
    def is_folder(self) -> bool:
        return self.kind is EntryKind.FOLDER


@dataclass
class Page:
    """One response unit of a listing or search."""

    entries: list[Entry] = field(default_factory=list)
    cursor: Optional[str] = None
    total_count: Optional[int] = None

    @property
    def has_more(self) -> bool:
        return self.cursor is not None


@dataclass
class BucketInfo:
    name: str
    creation_date: Optional[datetime] = None


@dataclass
class UploadItem:
    """A file queued for upload, addressed relative to the target prefix."""

    name: str
    body: bytes
    content_type: Optional[str] = None


@dataclass
class ConnectionProfile:
    """Credentials and endpoint used to build a store."""

    name: str
    endpoint_url: str
    access_key: str
    secret_key: str
    region: str = "us-east-1"


class OperationStatus(str, Enum):
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    BACKEND_ERROR = "backend_error"
    PARTIAL = "partial"


@dataclass
class OperationResult:
    """Outcome of a mutating (or pass-through) operation."""

    status: OperationStatus
    message: str = ""
    value: object = None
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @property
    def error(self) -> Optional[str]:
        return None if self.ok else self.message

    @classmethod
    def success(cls, value: object = None, message: str = "") -> "OperationResult":
        return cls(OperationStatus.SUCCESS, message=message, value=value)

    @classmethod
    def invalid(cls, message: str) -> "OperationResult":
        return cls(OperationStatus.VALIDATION_ERROR, message=message)

    @classmethod
    def backend_error(cls, message: str) -> "OperationResult":
        return cls(OperationStatus.BACKEND_ERROR, message=message)
