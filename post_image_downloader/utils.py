"""Utility helpers for URL, file name and attribute handling."""

from __future__ import annotations

import html
import posixpath
from typing import Tuple
from urllib.parse import urlsplit


def url_path(value: str) -> str:
    """Return the path part of a URL or file path, without query or fragment."""
    return urlsplit(value).path


def split_filename(value: str) -> Tuple[str, str]:
    """Split the last path segment of a URL or path into (stem, extension).

    The extension is returned without the leading dot, and is empty when the
    file name has none.
    """
    basename = posixpath.basename(url_path(value))
    stem, extension = posixpath.splitext(basename)
    return stem, extension.lstrip(".")


def filename_without_extension(value: str) -> str:
    return split_filename(value)[0]


def escape_attribute(value: str) -> str:
    """Escape a value the way it is written inside an HTML attribute."""
    return html.escape(value, quote=True)


def parse_csv(value: str | None) -> list[str] | None:
    """Split a comma separated option value, dropping blank entries."""
    if value is None:
        return None
    items = [item.strip() for item in value.split(",")]
    return [item for item in items if item]
