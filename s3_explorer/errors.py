from __future__ import annotations
"""Exceptions raised by the listing engines and object operations."""


class ExplorerError(Exception):
    """Base error for s3_explorer."""


class ListingFailed(ExplorerError):
    """Raised when a listing or search cannot reach or read the object store."""


class ValidationError(ExplorerError):
    """Raised when user input is rejected before any backend call."""


class DuplicateNameError(ExplorerError):
    """Raised when a folder or file already exists at the target key."""


class CursorDecodeError(ExplorerError):
    """Raised by the strict cursor parser for malformed tokens."""
