"""Data models used throughout the import and deduplication jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .utils import filename_without_extension


@dataclass
class Document:
    """A stored post or page whose HTML content may reference images."""

    id: int
    content: str
    post_type: str = "post"
    status: str = "publish"


@dataclass
class ImageReference:
    """An `<img>` element discovered in a document."""

    src: str
    title: str = ""
    alt: str = ""
    containing_block_id: Optional[int] = None


@dataclass
class BlockMatch:
    """A comment-delimited block located inside a document's content."""

    name: str
    html: str
    start: int
    end: int

    @property
    def opening_line(self) -> str:
        return self.html.split("\n", 1)[0]

    @property
    def inner_html(self) -> str:
        opening_end = self.html.find("-->")
        closing_start = self.html.rfind("<!--")
        if opening_end == -1 or closing_start <= opening_end:
            return ""
        return self.html[opening_end + 3 : closing_start]

    @property
    def attributes(self) -> Dict[str, Any]:
        from .blocks import read_attributes

        return read_attributes(self.html) or {}


@dataclass
class MediaAsset:
    """A managed media file with a stable id and canonical URL."""

    id: int
    file_path: str
    url: str


@dataclass
class DuplicateGroup:
    """Media assets sharing identical file content, in scan order."""

    content_hash: str
    members: List[MediaAsset] = field(default_factory=list)

    @property
    def survivor(self) -> MediaAsset:
        return self.members[0]

    @property
    def replaced(self) -> List[MediaAsset]:
        return self.members[1:]


class PathKind(Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class ResolvedPath:
    """Where an image should be imported from."""

    kind: PathKind
    location: str

    @property
    def is_local(self) -> bool:
        return self.kind is PathKind.LOCAL

    @property
    def stem(self) -> str:
        return filename_without_extension(self.location)
