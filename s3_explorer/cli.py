"""Command-line interface for browsing S3-compatible buckets."""

import argparse
import logging
import mimetypes
import os
import sys
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from .controller import S3ExplorerController
from .errors import ExplorerError
from .models import ConnectionProfile, OperationResult, Page, SortOrder, UploadItem
from .services import S3ExplorerService
from .settings import SettingsStorage
from .ui_utils import compose_s3_key, format_entry_row, parent_prefix

LOGGER = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="s3-explorer",
        description="Browse and manage objects in S3-compatible storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s buckets
  %(prog)s ls my-bucket docs/ --sort name-asc --page-size 20
  %(prog)s search my-bucket report --prefix docs/
  %(prog)s mkdir my-bucket docs/ invoices
""",
    )
    parser.add_argument("--endpoint", default=os.environ.get("S3_ENDPOINT_URL", ""), help="Custom S3 endpoint URL")
    parser.add_argument("--access-key", default=os.environ.get("AWS_ACCESS_KEY_ID", ""), help="Access key ID")
    parser.add_argument("--secret-key", default=os.environ.get("AWS_SECRET_ACCESS_KEY", ""), help="Secret access key")
    parser.add_argument("--region", default=os.environ.get("AWS_REGION", "us-east-1"), help="Region name")
    parser.add_argument("--settings", metavar="FILE", help="Path to the JSON settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("buckets", help="List buckets")

    ls = commands.add_parser("ls", help="List one page of a folder")
    ls.add_argument("bucket")
    ls.add_argument("prefix", nargs="?", default="")
    ls.add_argument("--page-size", type=_positive_int, help="Entries per page")
    ls.add_argument("--sort", choices=[order.value for order in SortOrder], help="File sort order")
    ls.add_argument("--cursor", help="Cursor returned by a previous listing")

    search = commands.add_parser("search", help="Search names under a folder")
    search.add_argument("bucket")
    search.add_argument("query")
    search.add_argument("--prefix", default="")

    count = commands.add_parser("count", help="Count entries in a folder")
    count.add_argument("bucket")
    count.add_argument("prefix", nargs="?", default="")

    mkdir = commands.add_parser("mkdir", help="Create a folder")
    mkdir.add_argument("bucket")
    mkdir.add_argument("prefix")
    mkdir.add_argument("name")

    mv = commands.add_parser("mv", help="Rename an object")
    mv.add_argument("bucket")
    mv.add_argument("key")
    mv.add_argument("new_name", help="New key, or a bare name to rename within the same folder")

    rm = commands.add_parser("rm", help="Delete objects")
    rm.add_argument("bucket")
    rm.add_argument("keys", nargs="+")

    put = commands.add_parser("put", help="Upload local files into a folder")
    put.add_argument("bucket")
    put.add_argument("prefix")
    put.add_argument("files", nargs="+", type=Path)

    publish = commands.add_parser("publish", help="Make an object publicly readable")
    publish.add_argument("bucket")
    publish.add_argument("key")

    url = commands.add_parser("url", help="Print a presigned download URL")
    url.add_argument("bucket")
    url.add_argument("key")
    url.add_argument("--expires", type=_positive_int, help="Lifetime in seconds")

    cat = commands.add_parser("cat", help="Print an object's content")
    cat.add_argument("bucket")
    cat.add_argument("key")

    return parser


def _print_page(page: Page) -> None:
    for entry in page.entries:
        print(format_entry_row(entry))
    if page.total_count is not None:
        print(f"# total: {page.total_count}")
    if page.cursor:
        print(f"# next cursor: {page.cursor}")


def _report(result: OperationResult) -> int:
    if result.ok:
        if isinstance(result.value, str):
            print(result.value)
        return 0
    print(f"error: {result.message}", file=sys.stderr)
    for key, message in result.failures.items():
        print(f"  {key}: {message}", file=sys.stderr)
    return 1


def _read_uploads(paths: list[Path]) -> list[UploadItem]:
    items = []
    for path in paths:
        content_type, _ = mimetypes.guess_type(path.name)
        items.append(UploadItem(name=path.name, body=path.read_bytes(), content_type=content_type))
    return items


def run(args: argparse.Namespace, controller: S3ExplorerController) -> int:
    profile = ConnectionProfile(
        name="cli",
        endpoint_url=args.endpoint,
        access_key=args.access_key,
        secret_key=args.secret_key,
        region=args.region,
    )
    buckets = controller.connect(profile)

    if args.command == "buckets":
        for bucket in buckets:
            print(bucket.name)
        return 0
    if args.command == "ls":
        _print_page(
            controller.list_page(
                bucket=args.bucket,
                prefix=args.prefix,
                page_size=args.page_size,
                cursor=args.cursor,
                sort_order=args.sort,
            )
        )
        return 0
    if args.command == "search":
        _print_page(controller.search(bucket=args.bucket, prefix=args.prefix, query=args.query))
        return 0
    if args.command == "count":
        print(controller.count(bucket=args.bucket, prefix=args.prefix)["count"])
        return 0
    if args.command == "mkdir":
        return _report(controller.create_folder(bucket=args.bucket, prefix=args.prefix, name=args.name))
    if args.command == "mv":
        new_key = args.new_name
        if "/" not in new_key:
            new_key = compose_s3_key(parent_prefix(args.key), new_key)
        return _report(controller.rename_object(bucket=args.bucket, old_key=args.key, new_key=new_key))
    if args.command == "rm":
        return _report(controller.delete_objects(bucket=args.bucket, keys=args.keys))
    if args.command == "put":
        return _report(controller.upload_files(bucket=args.bucket, prefix=args.prefix, items=_read_uploads(args.files)))
    if args.command == "publish":
        return _report(controller.make_public(bucket=args.bucket, key=args.key))
    if args.command == "url":
        return _report(controller.get_download_url(bucket=args.bucket, key=args.key, expires_in=args.expires))
    if args.command == "cat":
        return _report(controller.get_file_content(bucket=args.bucket, key=args.key))
    raise ValueError(f"Unknown command '{args.command}'")


def main(argv: list[str] | None = None, controller: S3ExplorerController | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if controller is None:
        settings = SettingsStorage(args.settings).load()
        controller = S3ExplorerController(S3ExplorerService(settings=settings), settings)

    try:
        return run(args, controller)
    except (ClientError, BotoCoreError, ExplorerError, OSError) as exc:
        LOGGER.debug("Command '%s' failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
