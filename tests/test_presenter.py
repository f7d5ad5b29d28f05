import json
import tempfile
import unittest
from pathlib import Path

from s3_explorer.controller import S3ExplorerController
from s3_explorer.models import ConnectionProfile, SortOrder
from s3_explorer.presenter import S3ExplorerPresenter
from s3_explorer.services import S3ExplorerService
from s3_explorer.settings import SettingsStorage

from fakes import FakeS3Client, at, client_error


class S3ExplorerPresenterTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.settings_path = Path(self._tmp.name) / "settings.json"
        self.settings_path.write_text(json.dumps({"page_size": 1, "sort_order": "date-desc"}), encoding="utf-8")
        self.storage = SettingsStorage(self.settings_path)

        self.client = FakeS3Client(
            {
                "a/inner.txt": {},
                "x.txt": {"last_modified": at(1)},
                "y.txt": {"last_modified": at(2)},
            }
        )
        settings = self.storage.load()
        service = S3ExplorerService(lambda *_, **__: self.client, settings=settings)
        self.controller = S3ExplorerController(service, settings)
        self.dispatched = []

        def dispatch(func):
            self.dispatched.append(func)
            func()

        self.presenter = S3ExplorerPresenter(
            controller=self.controller,
            settings_storage=self.storage,
            dispatch=dispatch,
            run_in_background=False,
        )
        self.profile = ConnectionProfile(name="local", endpoint_url="", access_key="a", secret_key="s")
        self.successes = []
        self.errors = []
        self.done = []

    def _connect(self):
        self.presenter.connect(
            profile=self.profile,
            on_success=self.successes.append,
            on_error=self.errors.append,
        )

    def test_connect_reports_buckets(self):
        self._connect()

        self.assertTrue(self.presenter.is_connected)
        self.assertEqual(["bucket"], [bucket.name for bucket in self.successes[0]])
        self.assertEqual([], self.errors)

    def test_list_page_uses_loaded_settings(self):
        self._connect()
        pages = []

        self.presenter.list_page(
            bucket="bucket",
            on_success=pages.append,
            on_error=self.errors.append,
            on_done=lambda: self.done.append(True),
        )
        self.presenter.list_page(
            bucket="bucket",
            cursor=pages[0].cursor,
            on_success=pages.append,
            on_error=self.errors.append,
        )

        self.assertEqual(["a/"], [entry.key for entry in pages[0].entries])
        self.assertEqual(["y.txt"], [entry.key for entry in pages[1].entries])
        self.assertEqual([True], self.done)

    def test_errors_go_to_error_callback(self):
        self._connect()
        self.client.list_errors.append(client_error("AccessDenied", "Denied"))
        pages = []

        with self.assertLogs("s3_explorer.presenter", level="WARNING"):
            self.presenter.list_page(
                bucket="bucket",
                on_success=pages.append,
                on_error=self.errors.append,
                on_done=lambda: self.done.append(True),
            )

        self.assertEqual([], pages)
        self.assertEqual(1, len(self.errors))
        self.assertIn("Denied", self.errors[0])
        self.assertEqual([True], self.done)

    def test_unexpected_errors_are_logged(self):
        with self.assertLogs("s3_explorer.presenter", level="ERROR"):
            self.presenter.search(
                bucket="bucket",
                query="x",
                on_success=self.successes.append,
                on_error=self.errors.append,
            )

        self.assertEqual(["Not connected to S3"], self.errors)

    def test_count_returns_number(self):
        self._connect()
        counts = []

        self.presenter.count(bucket="bucket", on_success=counts.append, on_error=self.errors.append)

        self.assertEqual([3], counts)

    def test_run_operation_success(self):
        self._connect()
        results = []

        self.presenter.run_operation(
            lambda controller: controller.create_folder(bucket="bucket", prefix="", name="new"),
            on_success=results.append,
            on_error=self.errors.append,
        )

        self.assertTrue(results[0].ok)
        self.assertIn("new/", self.client.keys())

    def test_run_operation_failure_goes_to_error(self):
        self._connect()
        results = []

        with self.assertLogs("s3_explorer.presenter", level="WARNING"):
            self.presenter.run_operation(
                lambda controller: controller.create_folder(bucket="bucket", prefix="", name="a"),
                on_success=results.append,
                on_error=self.errors.append,
            )

        self.assertEqual([], results)
        self.assertIn("already exists", self.errors[0])

    def test_settings_updates_are_persisted(self):
        self.presenter.update_page_size(0)
        self.presenter.update_sort_order("NAME-DESC")

        saved = json.loads(self.settings_path.read_text(encoding="utf-8"))
        self.assertEqual(1, saved["page_size"])
        self.assertEqual(SortOrder.NAME_DESC.value, saved["sort_order"])
        self.assertEqual(SortOrder.NAME_DESC.value, self.presenter.settings.sort_order)

    def test_settings_property_returns_copy(self):
        copy = self.presenter.settings
        copy.page_size = 99

        self.assertEqual(1, self.presenter.settings.page_size)


if __name__ == "__main__":
    unittest.main()
