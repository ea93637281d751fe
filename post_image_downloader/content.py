"""HTML extraction of `<img>` references from document content."""

from __future__ import annotations

from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from .blocks import find_blocks, get_attribute
from .models import ImageReference

IMAGE_BLOCK = "wp:image"


def _iter_imgs(html: str):
    soup = BeautifulSoup(html, "html.parser")
    return soup.find_all("img")


def _attr(tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def extract_img_tuples(html: str) -> List[ImageReference]:
    """Return src, title and alt of every `<img>`, in document order."""
    if not html:
        return []
    return [
        ImageReference(src=_attr(img, "src"), title=_attr(img, "title"), alt=_attr(img, "alt"))
        for img in _iter_imgs(html)
    ]


def extract_unique_img_srcs(html: str) -> List[str]:
    """Return the distinct `<img>` sources in first-seen order."""
    if not html:
        return []
    srcs: List[str] = []
    for img in _iter_imgs(html):
        src = _attr(img, "src")
        if src and src not in srcs:
            srcs.append(src)
    return srcs


def first_img_src(html: str) -> Optional[str]:
    for img in _iter_imgs(html):
        src = _attr(img, "src")
        if src:
            return src
    return None


def map_block_ids(content: str) -> Dict[str, int]:
    """Map img sources found inside image blocks to the block's attachment id."""
    block_ids: Dict[str, int] = {}
    for block in find_blocks(IMAGE_BLOCK, content):
        block_id = get_attribute(block.html, "id")
        if not isinstance(block_id, int) or isinstance(block_id, bool):
            continue
        for src in extract_unique_img_srcs(block.inner_html):
            block_ids.setdefault(src.strip(), block_id)
    return block_ids
