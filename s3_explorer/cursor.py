from __future__ import annotations
"""Opaque pagination tokens handed to callers between listing requests.

A token is a small versioned JSON record wrapped in URL-safe base64. The
caller never needs to understand it, and anything that fails to parse is
treated as "start from the beginning".
"""
import base64
import binascii
import json
import logging

from .errors import CursorDecodeError
from .models import CursorPhase, CursorState

LOGGER = logging.getLogger(__name__)

CURSOR_VERSION = 1
# Encoded cursors stay far below this; backend tokens are a few hundred bytes.
MAX_CURSOR_LENGTH = 4096


def encode_cursor(state: CursorState) -> str:
    payload: dict[str, object] = {
        "v": CURSOR_VERSION,
        "phase": state.phase.value,
        "fo": state.folder_offset,
    }
    if state.file_offset:
        payload["ff"] = state.file_offset
    if state.backend_token:
        payload["bt"] = state.backend_token
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def parse_cursor(token: str) -> CursorState:
    """Strictly decode ``token``.

    Raises:
        CursorDecodeError: when the token is not a cursor this module minted.
    """

    if not isinstance(token, str) or not token.strip():
        raise CursorDecodeError("empty cursor")
    cleaned = token.strip()
    if len(cleaned) > MAX_CURSOR_LENGTH:
        raise CursorDecodeError(f"cursor longer than {MAX_CURSOR_LENGTH} characters")
    padded = cleaned + "=" * (-len(cleaned) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError, RecursionError) as exc:
        raise CursorDecodeError(f"undecodable cursor: {exc}") from exc

    if not isinstance(payload, dict):
        raise CursorDecodeError("cursor payload is not a record")
    if payload.get("v") != CURSOR_VERSION:
        raise CursorDecodeError(f"unsupported cursor version {payload.get('v')!r}")
    try:
        phase = CursorPhase(payload.get("phase"))
    except ValueError as exc:
        raise CursorDecodeError(f"unknown cursor phase {payload.get('phase')!r}") from exc

    folder_offset = payload.get("fo", 0)
    file_offset = payload.get("ff", 0)
    for value in (folder_offset, file_offset):
        # bool is an int subclass; reject it along with negatives
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise CursorDecodeError(f"invalid cursor offset {value!r}")
    backend_token = payload.get("bt")
    if backend_token is not None and (not isinstance(backend_token, str) or not backend_token):
        raise CursorDecodeError("invalid backend token")

    return CursorState(
        folder_offset=folder_offset,
        phase=phase,
        backend_token=backend_token,
        file_offset=file_offset,
    )


def decode_cursor(token: str | None) -> CursorState:
    """Decode ``token``, falling back to the initial state on any problem."""

    if token is None or token == "":
        return CursorState()
    try:
        return parse_cursor(token)
    except CursorDecodeError as exc:
        LOGGER.debug("Ignoring malformed cursor: %s", exc)
        return CursorState()
