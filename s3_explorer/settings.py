from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass, fields
import json
import logging
from pathlib import Path

from .models import DEFAULT_SORT_ORDER, SortOrder

LOGGER = logging.getLogger(__name__)


@dataclass
class AppSettings:
    """Simple container for persistent app settings."""

    page_size: int = 100
    sort_order: str = DEFAULT_SORT_ORDER.value
    acl_batch_size: int = 10
    search_result_limit: int = 100
    enumeration_cap: int = 2000
    presign_ttl: int = 3600


_POSITIVE_INT_FIELDS = tuple(f.name for f in fields(AppSettings) if f.type in ("int", int))


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _sort_order(value: object) -> str:
    if not isinstance(value, str):
        return AppSettings.sort_order
    try:
        return SortOrder.parse(value).value
    except ValueError:
        return AppSettings.sort_order


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".s3_explorer_settings.json"
        self._path = Path(storage_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable settings file %s", self._path)
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()
        values: dict[str, object] = {
            name: _positive_int(data.get(name), getattr(AppSettings, name))
            for name in _POSITIVE_INT_FIELDS
        }
        values["sort_order"] = _sort_order(data.get("sort_order"))
        return AppSettings(**values)

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        for name in _POSITIVE_INT_FIELDS:
            payload[name] = max(int(payload[name]), 1)
        payload["sort_order"] = _sort_order(payload["sort_order"])
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            LOGGER.warning("Could not write settings file %s", self._path)
            return
