"""Corpus-wide detection and merging of byte-identical media files."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

from .blocks import find_blocks, get_attribute, splice_blocks
from .config import DedupeConfig
from .content import IMAGE_BLOCK
from .images import hash_file
from .logs import LogChannel, LogSink
from .models import Document, DuplicateGroup, MediaAsset
from .rewriter import ImageBlockRewriter
from .stores import ContentStore, MediaStore

logger = logging.getLogger("post_image_downloader")


@dataclass
class DedupeReport:
    """Outcome of a deduplication run."""

    groups: List[DuplicateGroup] = field(default_factory=list)
    updated_document_ids: List[int] = field(default_factory=list)
    deleted_asset_ids: List[int] = field(default_factory=list)
    missing_asset_ids: List[int] = field(default_factory=list)
    elapsed_seconds: float = 0.0


def find_duplicate_groups(
    assets: Sequence[MediaAsset],
    log_sink: LogSink | None = None,
    missing: List[int] | None = None,
) -> List[DuplicateGroup]:
    """Group assets by file content hash, keeping only real duplicates.

    Groups and their members follow the order of `assets`; the first member
    of each group is the one that survives.
    """
    by_hash: Dict[str, DuplicateGroup] = {}
    for asset in assets:
        path = Path(asset.file_path)
        if not path.is_file():
            logger.warning("Media file for attachment %d is missing: %s", asset.id, path)
            if log_sink is not None:
                log_sink.write(
                    LogChannel.DEDUPLICATION,
                    f"Attachment ID {asset.id} file missing {path}",
                )
            if missing is not None:
                missing.append(asset.id)
            continue
        digest = hash_file(path)
        by_hash.setdefault(digest, DuplicateGroup(content_hash=digest)).members.append(asset)
    return [group for group in by_hash.values() if len(group.members) > 1]


def _same_id(value, asset_id: int) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    try:
        return int(value) == asset_id
    except (TypeError, ValueError):
        return False


class MediaDeduplicator:
    """Merges duplicate media into one survivor per group."""

    def __init__(
        self,
        content_store: ContentStore,
        media_store: MediaStore,
        log_sink: LogSink,
    ) -> None:
        self.content_store = content_store
        self.media_store = media_store
        self.log_sink = log_sink
        self.rewriter = ImageBlockRewriter(media_store)

    def run(self, config: DedupeConfig) -> DedupeReport:
        report = DedupeReport()
        start = time.perf_counter()
        self.log_sink.flush([LogChannel.DEDUPLICATION])

        assets = self.media_store.list_assets()
        logger.info("Hashing %d media files...", len(assets))
        report.groups = find_duplicate_groups(assets, self.log_sink, report.missing_asset_ids)
        logger.info("Found %d duplicate groups", len(report.groups))
        if not report.groups:
            report.elapsed_seconds = time.perf_counter() - start
            return report

        documents = self.content_store.fetch_documents(None, config.post_types, config.post_statuses)
        for document in documents:
            content = self.rewrite_document(document, report.groups, config.dry_run)
            if content is None:
                continue
            if not config.dry_run:
                self.content_store.update_content(document.id, content)
            report.updated_document_ids.append(document.id)
            logger.info("Post ID %d updated", document.id)

        for group in report.groups:
            for asset in group.replaced:
                if not config.dry_run:
                    self.media_store.delete_asset(asset.id)
                report.deleted_asset_ids.append(asset.id)
                self.log_sink.write(
                    LogChannel.DEDUPLICATION,
                    f"Deleted attachment ID {asset.id}, duplicate of attachment ID {group.survivor.id}",
                )

        report.elapsed_seconds = time.perf_counter() - start
        return report

    def rewrite_document(
        self,
        document: Document,
        groups: Sequence[DuplicateGroup],
        dry_run: bool = False,
    ) -> str | None:
        """Point the document's references at survivors; return new content if changed."""
        content = document.content
        changed = False
        for group in groups:
            survivor = group.survivor
            for asset in group.replaced:
                if self.media_store.get_featured_image_id(document.id) == asset.id:
                    if not dry_run:
                        self.media_store.set_featured_image_id(document.id, survivor.id)
                    changed = True
                    self.log_sink.write(
                        LogChannel.DEDUPLICATION,
                        f"Post ID {document.id} featured image {asset.id} -> {survivor.id}",
                    )

                replacements = [
                    (block, self.rewriter.update_image(block.html, survivor.id, survivor.url))
                    for block in find_blocks(IMAGE_BLOCK, content)
                    if _same_id(get_attribute(block.html, "id"), asset.id)
                ]
                if replacements:
                    content = splice_blocks(content, replacements)
                    self.log_sink.write(
                        LogChannel.DEDUPLICATION,
                        f"Post ID {document.id} image blocks {asset.id} -> {survivor.id} ({len(replacements)})",
                    )

                if asset.url and asset.url in content:
                    content = content.replace(asset.url, survivor.url)
                    self.log_sink.write(
                        LogChannel.DEDUPLICATION,
                        f"Post ID {document.id} src {asset.url} -> {survivor.url}",
                    )

        if content != document.content:
            changed = True
        if not changed:
            return None
        return content
