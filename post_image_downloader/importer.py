"""Per-document pipeline that imports referenced images into the media store."""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .config import DRY_RUN_URL, ImportConfig
from .content import extract_img_tuples, map_block_ids
from .errors import FailureKind, ImageImportError
from .hosts import HostFilter, build_host_filter
from .logs import IMPORT_CHANNELS, LogChannel, LogSink
from .models import Document, ImageReference, ResolvedPath
from .paths import resolve_image_path
from .stores import ContentStore, MediaStore, SiteSettings
from .utils import escape_attribute

logger = logging.getLogger("post_image_downloader")

FAILURE_CHANNELS = {
    FailureKind.NO_DEFAULT_HOST: LogChannel.MISSING_DEFAULT_HOST,
    FailureKind.DOWNLOAD: LogChannel.DOWNLOAD_FAILED,
    FailureKind.IMPORT: LogChannel.IMPORT_FAILED,
    FailureKind.OTHER: LogChannel.OTHER_ERROR,
}


@dataclass
class ImportReport:
    """Outcome of an import run."""

    documents_processed: int = 0
    documents_updated: List[int] = field(default_factory=list)
    images_imported: int = 0
    failures: Counter = field(default_factory=Counter)
    elapsed_seconds: float = 0.0


class ImageImporter:
    """Imports every image a document references and rewrites its `src`."""

    def __init__(
        self,
        content_store: ContentStore,
        media_store: MediaStore,
        log_sink: LogSink,
        site: Optional[SiteSettings] = None,
    ) -> None:
        self.content_store = content_store
        self.media_store = media_store
        self.log_sink = log_sink
        self.site = site or SiteSettings()

    def run(self, config: ImportConfig) -> ImportReport:
        config.selection.validate()
        host_filter = build_host_filter(
            config.exclude_hosts,
            config.only_download_from_hosts,
            self.site.site_host(),
        )
        self.log_sink.flush(IMPORT_CHANNELS)

        report = ImportReport()
        start = time.perf_counter()
        logger.info("Fetching Posts...")
        documents = self.content_store.fetch_documents(
            config.selection, config.post_types, config.post_statuses
        )
        if not documents:
            logger.warning("No Posts found.")
            return report

        for index, document in enumerate(documents, start=1):
            updated = self.process_document(
                document, config, host_filter, report, position=(index, len(documents))
            )
            report.documents_processed += 1
            if updated is None:
                continue
            if not config.dry_run:
                self.content_store.update_content(document.id, updated)
            report.documents_updated.append(document.id)
            logger.info("Post content updated")

        report.elapsed_seconds = time.perf_counter() - start
        return report

    def process_document(
        self,
        document: Document,
        config: ImportConfig,
        host_filter: HostFilter,
        report: ImportReport,
        position: tuple[int, int] = (1, 1),
    ) -> Optional[str]:
        """Import the document's images; return its new content if it changed."""
        references = extract_img_tuples(document.content)
        logger.info(
            "(%d/%d) ID %d, found %d images...",
            position[0],
            position[1],
            document.id,
            len(references),
        )
        if not references:
            return None

        block_ids = map_block_ids(document.content)
        content = document.content
        handled: Set[str] = set()
        for reference in references:
            reference.src = reference.src.strip()
            reference.containing_block_id = block_ids.get(reference.src)
            src = reference.src
            if not src:
                logger.info("skipping, img without src")
                continue
            if src in handled:
                logger.info("skipping, already downloaded %s", src)
                continue
            handled.add(src)

            if not host_filter.allows(src):
                logger.info("skipping, host filtered out %s", src)
                continue

            new_url = self._import_reference(document, reference, config, report)
            if new_url is None:
                continue
            content = content.replace(escape_attribute(src), new_url).replace(src, new_url)

        if content == document.content:
            return None
        return content

    def _import_reference(
        self,
        document: Document,
        reference: ImageReference,
        config: ImportConfig,
        report: ImportReport,
    ) -> Optional[str]:
        src = reference.src
        try:
            resolved = resolve_image_path(src, config.local_folder, config.default_host_and_schema)
        except ImageImportError as exc:
            if exc.kind is FailureKind.NO_DEFAULT_HOST:
                logger.warning("Default download host+schema missing: %s", exc)
            else:
                logger.warning("Unknown error when getting image path: %s", exc)
            self._record_failure(exc.kind, document, src, None, report)
            return None
        except ValueError as exc:
            # urlsplit rejects malformed URLs such as an unclosed IPv6 bracket.
            logger.warning("Unknown error when getting image path: %s", exc)
            self._record_failure(FailureKind.OTHER, document, src, str(exc), report)
            return None

        title = reference.title or resolved.stem
        alt = reference.alt or resolved.stem

        logger.info(
            "%s %s ...",
            "importing file" if resolved.is_local else "downloading",
            resolved.location,
        )
        if config.dry_run:
            attachment_id = None
            new_url = DRY_RUN_URL
        else:
            try:
                attachment_id = self._fetch(resolved, title, alt, document.id)
            except ImageImportError as exc:
                logger.warning("Error importing %s: %s", src, exc)
                self._record_failure(exc.kind, document, src, str(exc), report)
                return None
            except Exception as exc:  # pylint: disable=broad-except
                logger.exception("Unknown error importing %s", src)
                self._record_failure(FailureKind.OTHER, document, src, str(exc), report)
                return None
            new_url = self.media_store.canonical_url(attachment_id) or ""
            if not new_url:
                self._record_failure(
                    FailureKind.OTHER, document, src, f"No URL for attachment {attachment_id}", report
                )
                return None
            report.images_imported += 1

        block_note = ""
        if reference.containing_block_id is not None:
            block_note = f" ; image block attachment ID {reference.containing_block_id}"
        self.log_sink.write(
            LogChannel.DOWNLOAD_SUCCESS,
            f"Post ID {document.id} ; original src {src} ; new src {new_url} ; "
            f"imported attachment ID {attachment_id if attachment_id is not None else 0}{block_note}",
        )
        return new_url

    def _fetch(self, resolved: ResolvedPath, title: str, alt: str, doc_id: int) -> int:
        if resolved.is_local:
            return self.media_store.import_from_local_path(resolved.location, title, alt, doc_id)
        return self.media_store.import_from_url(resolved.location, title, alt, doc_id)

    def _record_failure(
        self,
        kind: FailureKind,
        document: Document,
        src: str,
        message: Optional[str],
        report: ImportReport,
    ) -> None:
        channel = FAILURE_CHANNELS[kind]
        line = f"ID {document.id} src {src}"
        if message:
            line += f" : {message}"
        self.log_sink.write(channel, line)
        report.failures[channel] += 1


def summarize_logs(sink: LogSink, default_host_and_schema: Optional[str]) -> List[str]:
    """Describe the non-empty log channels and what to do about them."""
    lines = []
    if sink.has_entries(LogChannel.DOWNLOAD_SUCCESS):
        lines.append(
            f"For a full list of downloaded images, see `{sink.path(LogChannel.DOWNLOAD_SUCCESS)}`."
        )
    if sink.has_entries(LogChannel.DOWNLOAD_FAILED):
        lines.append(
            "Some images could not be downloaded. See the "
            f"`{sink.path(LogChannel.DOWNLOAD_FAILED)}` log file for a full list."
        )
    if sink.has_entries(LogChannel.IMPORT_FAILED):
        lines.append(
            "Some images could not be imported into the Media Library. See the "
            f"`{sink.path(LogChannel.IMPORT_FAILED)}` log file for a full list."
        )
    if sink.has_entries(LogChannel.MISSING_DEFAULT_HOST):
        hint = (
            ", probably because you did not provide the `--default-image-host-and-schema` param"
            if not default_host_and_schema
            else ""
        )
        lines.append(
            f"Some non-fully-qualified images URLs could not be downloaded{hint}. See the "
            f"`{sink.path(LogChannel.MISSING_DEFAULT_HOST)}` log file for a full list. "
            "You will probably want to set this parameter and rerun this command."
        )
    if sink.has_entries(LogChannel.OTHER_ERROR):
        lines.append(
            "Some unknown errors occurred. See the "
            f"`{sink.path(LogChannel.OTHER_ERROR)}` log file for a full list."
        )
    return lines
