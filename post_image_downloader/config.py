"""Configuration objects and constants for the batch jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import InvalidInvocation

DEFAULT_POST_TYPES = ("post", "page")
DEFAULT_POST_STATUSES = ("publish",)
DRY_RUN_URL = "https://dry-run/new-url"


@dataclass
class DocumentSelection:
    """Which documents a job runs on: an explicit id list, a range, or all."""

    ids: Optional[List[int]] = None
    id_from: Optional[int] = None
    id_to: Optional[int] = None

    def validate(self) -> None:
        if self.ids and (self.id_from is not None or self.id_to is not None):
            raise InvalidInvocation(
                "Sorry, you can either specify a CSV list of Post IDs, or a range of Post IDs."
            )
        if (self.id_from is None) != (self.id_to is None):
            raise InvalidInvocation(
                "Both `--post-id-from` and `--post-id-to` ranges are required."
            )

    def includes(self, doc_id: int) -> bool:
        if self.ids:
            return doc_id in self.ids
        if self.id_from is not None and self.id_to is not None:
            return self.id_from <= doc_id <= self.id_to
        return True


@dataclass
class ImportConfig:
    """Settings that control the image import job."""

    selection: DocumentSelection = field(default_factory=DocumentSelection)
    post_types: Tuple[str, ...] = DEFAULT_POST_TYPES
    post_statuses: Tuple[str, ...] = DEFAULT_POST_STATUSES
    dry_run: bool = False
    default_host_and_schema: Optional[str] = None
    local_folder: Optional[str] = None
    exclude_hosts: Optional[List[str]] = None
    only_download_from_hosts: Optional[List[str]] = None

    def __post_init__(self) -> None:
        if self.default_host_and_schema:
            self.default_host_and_schema = self.default_host_and_schema.rstrip("/")
        if self.local_folder:
            self.local_folder = self.local_folder.rstrip("/")


@dataclass
class DedupeConfig:
    """Settings that control the media deduplication job."""

    post_types: Tuple[str, ...] = DEFAULT_POST_TYPES
    post_statuses: Tuple[str, ...] = DEFAULT_POST_STATUSES
    dry_run: bool = False


@dataclass
class ScanConfig:
    """Settings for the image host report."""

    selection: DocumentSelection = field(default_factory=DocumentSelection)
    post_types: Tuple[str, ...] = DEFAULT_POST_TYPES
    post_statuses: Tuple[str, ...] = DEFAULT_POST_STATUSES
    list_all_post_ids: bool = False
