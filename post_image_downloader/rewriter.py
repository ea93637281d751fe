"""Swapping the attachment referenced by an image block."""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Optional
from urllib.parse import urlsplit

from .blocks import get_attribute, set_attribute
from .content import first_img_src
from .stores import MediaStore
from .utils import escape_attribute, filename_without_extension

logger = logging.getLogger("post_image_downloader")


def compose_src(new_src: str, resolution_modifier: str = "", query: str = "") -> str:
    """Build an image URL from `new_src` carrying a size suffix and query string."""
    base = new_src.split("#", 1)[0].split("?", 1)[0]
    filename = posixpath.basename(base)
    head = base[: len(base) - len(filename)]
    stem, extension = posixpath.splitext(filename)
    composed = f"{head}{stem}{resolution_modifier}{extension}"
    if query:
        composed += f"?{query}"
    return composed


class ImageBlockRewriter:
    """Points an image block at another attachment.

    Image blocks often reference a resized variant such as
    ``photo-1024x439.jpg`` and may carry a cache-busting query string. Both
    are kept when the block is moved to the new attachment, so
    ``photo-1024x439.jpg?v=2`` on attachment 15 becomes
    ``other-1024x439.jpg?v=2`` on attachment 123.
    """

    def __init__(self, media_store: MediaStore) -> None:
        self.media_store = media_store

    def resolution_modifier(self, current_src: str, old_id: Optional[int]) -> str:
        if old_id is None:
            return ""
        original_url = self.media_store.canonical_url(old_id)
        if not original_url:
            logger.debug("No canonical URL for attachment %s, dropping size suffix", old_id)
            return ""
        current_stem = filename_without_extension(current_src)
        original_stem = filename_without_extension(original_url)
        if not current_stem.startswith(original_stem):
            return ""
        return current_stem[len(original_stem) :]

    def update_image(self, block_html: str, new_id: int, new_src: str) -> str:
        old_src = first_img_src(block_html)
        if not old_src:
            return block_html

        old_id = _as_int(get_attribute(block_html, "id"))
        updated = set_attribute(block_html, "id", int(new_id))

        modifier = self.resolution_modifier(old_src, old_id)
        query = urlsplit(old_src).query
        composed = compose_src(new_src, modifier, query)

        escaped_old = escape_attribute(old_src)
        if escaped_old != old_src:
            updated = updated.replace(escaped_old, escape_attribute(composed))
        updated = updated.replace(old_src, composed)

        if old_id is not None:
            updated = re.sub(rf"(?<![\w-])wp-image-{old_id}(?![\w-])", f"wp-image-{int(new_id)}", updated)
        return updated


def _as_int(value) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
