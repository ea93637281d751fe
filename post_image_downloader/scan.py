"""Report of the hosts that images in the selected documents are served from."""

from __future__ import annotations

from typing import Dict, Iterable, List

from .content import extract_unique_img_srcs
from .hosts import uri_host
from .models import Document

RELATIVE_PATHS_KEY = "relative URL paths"


def scan_image_hosts(documents: Iterable[Document]) -> Dict[str, List[int]]:
    """Map each image host to the ids of documents referencing it.

    Sources without a host (relative paths, but also ``data:`` URIs) are
    collected under ``"relative URL paths"``.
    """
    hosts: Dict[str, List[int]] = {}
    for document in documents:
        for src in extract_unique_img_srcs(document.content):
            key = uri_host(src) or RELATIVE_PATHS_KEY
            doc_ids = hosts.setdefault(key, [])
            if document.id not in doc_ids:
                doc_ids.append(document.id)
    return hosts


def format_host_report(hosts: Dict[str, List[int]], list_all_post_ids: bool = False) -> List[str]:
    lines = [f"Found {len(hosts)} total image hosts{':' if hosts else '.'}"]
    for host, doc_ids in hosts.items():
        suffix = " -- in IDs: " + ",".join(str(doc_id) for doc_id in doc_ids) if list_all_post_ids else ""
        lines.append(f"- {host}{suffix}")
    return lines
