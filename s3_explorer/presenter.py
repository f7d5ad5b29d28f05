from __future__ import annotations
"""View-agnostic presenter that wraps controller operations."""
from dataclasses import replace
import logging
import threading
from typing import Callable

from botocore.exceptions import BotoCoreError, ClientError

from .controller import S3ExplorerController
from .errors import ExplorerError
from .models import BucketInfo, ConnectionProfile, OperationResult, Page, SortOrder
from .settings import AppSettings, SettingsStorage


DispatchFn = Callable[[Callable[[], None]], None]
ErrorFn = Callable[[str], None]
DoneFn = Callable[[], None]

LOGGER = logging.getLogger(__name__)


def _format_error(exc: Exception) -> str:
    return str(exc)


class S3ExplorerPresenter:
    """Runs background operations and returns results via callbacks.

    Failures never escape a worker thread: they are logged and handed to
    ``on_error`` so the view can offer a retry.
    """

    def __init__(
        self,
        *,
        controller: S3ExplorerController | None = None,
        settings_storage: SettingsStorage | None = None,
        dispatch: DispatchFn | None = None,
        run_in_background: bool = True,
    ) -> None:
        self._settings_storage = settings_storage or SettingsStorage()
        self._settings = self._settings_storage.load()
        self._controller = controller or S3ExplorerController(settings=self._settings)
        self._dispatch = dispatch or (lambda func: func())
        self._run_in_background = run_in_background

    @property
    def settings(self) -> AppSettings:
        return replace(self._settings)

    @property
    def is_connected(self) -> bool:
        return self._controller.is_connected

    def save_settings(self, settings: AppSettings) -> None:
        self._settings = settings
        self._settings_storage.save(settings)

    def update_page_size(self, value: int) -> None:
        normalized = max(int(value), 1)
        self._settings = replace(self._settings, page_size=normalized)
        self._settings_storage.save(self._settings)

    def update_sort_order(self, value: SortOrder | str) -> None:
        order = SortOrder.parse(value)
        self._settings = replace(self._settings, sort_order=order.value)
        self._settings_storage.save(self._settings)

    def connect(
        self,
        *,
        profile: ConnectionProfile,
        on_success: Callable[[list[BucketInfo]], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Connecting using profile '%s'", profile.name)
        self._start(
            f"connect with profile '{profile.name}'",
            lambda: self._controller.connect(profile),
            on_success,
            on_error,
            on_done,
        )

    def list_page(
        self,
        *,
        bucket: str,
        prefix: str = "",
        cursor: str | None = None,
        on_success: Callable[[Page], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Listing '%s' prefix '%s'", bucket, prefix)
        self._start(
            f"list '{bucket}/{prefix}'",
            lambda: self._controller.list_page(
                bucket=bucket,
                prefix=prefix,
                page_size=self._settings.page_size,
                cursor=cursor,
                sort_order=self._settings.sort_order,
            ),
            on_success,
            on_error,
            on_done,
        )

    def search(
        self,
        *,
        bucket: str,
        prefix: str = "",
        query: str,
        on_success: Callable[[Page], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Searching '%s' prefix '%s' for '%s'", bucket, prefix, query)
        self._start(
            f"search '{bucket}/{prefix}'",
            lambda: self._controller.search(bucket=bucket, prefix=prefix, query=query),
            on_success,
            on_error,
            on_done,
        )

    def count(
        self,
        *,
        bucket: str,
        prefix: str = "",
        on_success: Callable[[int], None],
        on_error: ErrorFn,
    ) -> None:
        self._start(
            f"count '{bucket}/{prefix}'",
            lambda: self._controller.count(bucket=bucket, prefix=prefix)["count"],
            on_success,
            on_error,
            None,
        )

    def run_operation(
        self,
        operation: Callable[[S3ExplorerController], OperationResult],
        *,
        on_success: Callable[[OperationResult], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        """Run a mutating controller call; non-success results go to ``on_error``."""

        def unwrap() -> OperationResult:
            result = operation(self._controller)
            if not result.ok:
                raise ExplorerError(result.message)
            return result

        self._start("object operation", unwrap, on_success, on_error, on_done)

    def _start(
        self,
        description: str,
        work: Callable[[], object],
        on_success: Callable[[object], None],
        on_error: ErrorFn,
        on_done: DoneFn | None,
    ) -> None:
        def task() -> None:
            try:
                result = work()
            except (BotoCoreError, ClientError, ExplorerError) as exc:
                LOGGER.warning("Failed to %s: %s", description, exc)
                self._dispatch(lambda: on_error(_format_error(exc)))
            except Exception as exc:
                LOGGER.exception("Unexpected error during %s", description)
                self._dispatch(lambda: on_error(_format_error(exc)))
            else:
                self._dispatch(lambda: on_success(result))
            finally:
                if on_done:
                    self._dispatch(on_done)

        if self._run_in_background:
            threading.Thread(target=task, daemon=True).start()
        else:
            task()
