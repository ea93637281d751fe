"""Command-line entry point for the post image downloader."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Sequence

from .config import (
    DEFAULT_POST_STATUSES,
    DEFAULT_POST_TYPES,
    DedupeConfig,
    DocumentSelection,
    ImportConfig,
    ScanConfig,
)
from .dedupe import MediaDeduplicator
from .errors import InvalidInvocation
from .importer import ImageImporter, summarize_logs
from .logs import LogChannel, LogSink
from .scan import format_host_report, scan_image_hosts
from .stores import DirectoryMediaStore, JsonContentStore, SiteSettings
from .utils import parse_csv

logger = logging.getLogger("post_image_downloader.cli")


def _env_default(name: str, fallback: str | None = None) -> str | None:
    return os.getenv(name) or fallback


def _parse_ids(value: str | None) -> list[int] | None:
    items = parse_csv(value)
    if items is None:
        return None
    try:
        return [int(item) for item in items]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid post ID in {value!r}") from exc


def _add_common_arguments(parser: argparse.ArgumentParser, with_media: bool = True) -> None:
    parser.add_argument(
        "--content-file",
        type=Path,
        default=_env_default("IMAGE_DOWNLOADER_CONTENT_FILE", "posts.json"),
        help="JSON file holding the posts to process",
    )
    if with_media:
        parser.add_argument(
            "--media-dir",
            type=Path,
            default=_env_default("IMAGE_DOWNLOADER_MEDIA_DIR", "media"),
            help="Directory holding the media library files and manifest",
        )
        parser.add_argument(
            "--media-base-url",
            default=_env_default("IMAGE_DOWNLOADER_MEDIA_BASE_URL", "http://localhost/wp-content/uploads"),
            help="Public URL the media library's uploads folder is served from",
        )
        parser.add_argument(
            "--site-url",
            default=_env_default("IMAGE_DOWNLOADER_SITE_URL"),
            help="This site's URL; its host is never downloaded from",
        )
        parser.add_argument(
            "--log-dir",
            type=Path,
            default=_env_default("IMAGE_DOWNLOADER_LOG_DIR", "."),
            help="Directory where the per-channel log files are written",
        )
    parser.add_argument(
        "--post-types",
        default=",".join(DEFAULT_POST_TYPES),
        help="CSV post types. Defaults are `post,page`",
    )
    parser.add_argument(
        "--post-statuses",
        default=",".join(DEFAULT_POST_STATUSES),
        help="CSV post statuses. Default is `publish`",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--post-ids-csv", help="CSV list of post IDs")
    parser.add_argument("--post-id-from", type=int, help="Only process post IDs from-to")
    parser.add_argument("--post-id-to", type=int, help="Only process post IDs from-to")


def _add_import_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Perform a dry run, making no changes",
    )
    parser.add_argument(
        "--default-image-host-and-schema",
        help="Schema and host to download relative URLs from, e.g. `https://defaulthost.com`",
    )
    parser.add_argument(
        "--exclude-hosts",
        help=(
            "CSV list of hosts to exclude downloading from. Wildcards are supported, e.g. "
            "`google.com,*.google.com`, `www.google.*` or `*.google.*`"
        ),
    )
    parser.add_argument(
        "--only-download-from-hosts",
        help=(
            "CSV list of the only hosts to download images from; cannot be combined with "
            "`--exclude-hosts`. Wildcards are supported as in `--exclude-hosts`"
        ),
    )
    parser.add_argument(
        "--folder-local-images",
        help="Local folder with image files; images found here are imported instead of downloaded",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Import images referenced by posts into the media library, and merge duplicate media files."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan-hosts",
        help="List the hosts of all images found in the posts",
    )
    _add_common_arguments(scan_parser, with_media=False)
    _add_selection_arguments(scan_parser)
    scan_parser.add_argument(
        "--list-all-post-ids",
        action="store_true",
        help="Also list the post IDs each host was found in",
    )

    import_parser = subparsers.add_parser(
        "import-images",
        help="Download remote images and import local ones into the media library",
    )
    _add_common_arguments(import_parser)
    _add_selection_arguments(import_parser)
    _add_import_arguments(import_parser)

    dedupe_parser = subparsers.add_parser(
        "dedupe-media",
        help="Merge identical media files and point posts at the surviving copy",
    )
    _add_common_arguments(dedupe_parser)
    dedupe_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Perform a dry run, making no changes",
    )

    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))
    args.parser = parser
    return args


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _selection(args: argparse.Namespace) -> DocumentSelection:
    selection = DocumentSelection(
        ids=_parse_ids(args.post_ids_csv),
        id_from=args.post_id_from,
        id_to=args.post_id_to,
    )
    selection.validate()
    return selection


def _media_store(args: argparse.Namespace) -> DirectoryMediaStore:
    return DirectoryMediaStore(Path(args.media_dir).resolve(), args.media_base_url)


def _run_scan(args: argparse.Namespace) -> None:
    config = ScanConfig(
        selection=_selection(args),
        post_types=tuple(parse_csv(args.post_types) or DEFAULT_POST_TYPES),
        post_statuses=tuple(parse_csv(args.post_statuses) or DEFAULT_POST_STATUSES),
        list_all_post_ids=args.list_all_post_ids,
    )
    start = time.perf_counter()
    store = JsonContentStore(args.content_file)
    documents = store.fetch_documents(config.selection, config.post_types, config.post_statuses)
    if not documents:
        logger.warning("No Posts found.")
        return

    logger.info("Checking image hosts in %d posts...", len(documents))
    hosts = scan_image_hosts(documents)
    for line in format_host_report(hosts, config.list_all_post_ids):
        sys.stdout.write(line + "\n")
    sys.stdout.flush()
    logger.debug("Scan finished in %.2fs", time.perf_counter() - start)


def _run_import(args: argparse.Namespace) -> None:
    selection = _selection(args)
    config = ImportConfig(
        selection=selection,
        post_types=tuple(parse_csv(args.post_types) or DEFAULT_POST_TYPES),
        post_statuses=tuple(parse_csv(args.post_statuses) or DEFAULT_POST_STATUSES),
        dry_run=args.dry_run,
        default_host_and_schema=args.default_image_host_and_schema,
        local_folder=args.folder_local_images,
        exclude_hosts=parse_csv(args.exclude_hosts),
        only_download_from_hosts=parse_csv(args.only_download_from_hosts),
    )
    sink = LogSink(Path(args.log_dir), selection.id_from, selection.id_to)
    importer = ImageImporter(
        JsonContentStore(args.content_file),
        _media_store(args),
        sink,
        SiteSettings(args.site_url),
    )
    report = importer.run(config)

    for line in summarize_logs(sink, config.default_host_and_schema):
        logger.warning(line)
    logger.info(
        "All done! %d posts processed, %d updated, %d images imported in %.2fs",
        report.documents_processed,
        len(report.documents_updated),
        report.images_imported,
        report.elapsed_seconds,
    )


def _run_dedupe(args: argparse.Namespace) -> None:
    config = DedupeConfig(
        post_types=tuple(parse_csv(args.post_types) or DEFAULT_POST_TYPES),
        post_statuses=tuple(parse_csv(args.post_statuses) or DEFAULT_POST_STATUSES),
        dry_run=args.dry_run,
    )
    sink = LogSink(Path(args.log_dir))
    deduplicator = MediaDeduplicator(JsonContentStore(args.content_file), _media_store(args), sink)
    report = deduplicator.run(config)

    if report.missing_asset_ids:
        logger.warning(
            "%d media files were missing on disk. See `%s`.",
            len(report.missing_asset_ids),
            sink.path(LogChannel.DEDUPLICATION),
        )
    logger.info(
        "All done! %d duplicate groups, %d posts updated, attachments deleted: %s (%.2fs)",
        len(report.groups),
        len(report.updated_document_ids),
        ",".join(str(asset_id) for asset_id in report.deleted_asset_ids) or "none",
        report.elapsed_seconds,
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    try:
        if args.command == "scan-hosts":
            _run_scan(args)
        elif args.command == "import-images":
            _run_import(args)
        else:
            _run_dedupe(args)
    except (InvalidInvocation, argparse.ArgumentTypeError) as exc:
        args.parser.error(str(exc))


if __name__ == "__main__":
    main()
