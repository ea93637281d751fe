"""Shared sample content, fakes and stubs for the test suite."""

import json
from pathlib import Path
from typing import Dict, List, Optional

import requests

from post_image_downloader.models import Document, MediaAsset

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 64

TWO_IMAGE_BLOCKS = """<!-- wp:image {"id":2,"sizeSlug":"large","linkDestination":"none"} -->
<figure class="wp-block-image size-large"><img src="https://menu-live.test/wp-content/uploads/2021/10/WP-art-1-1024x439.png" alt="" class="wp-image-2"/></figure>
<!-- /wp:image -->

<!-- wp:paragraph -->
<p>some text</p>
<!-- /wp:paragraph -->

<!-- wp:image {"id":5,"sizeSlug":"large","linkDestination":"none"} -->
<figure class="wp-block-image size-large"><img src="https://menu-live.test/wp-content/uploads/2021/10/WP-art-2-1024x341.jpg" alt="" class="wp-image-5"/></figure>
<!-- /wp:image -->

<!-- wp:paragraph -->
<p>some text</p>
<!-- /wp:paragraph -->"""

NO_IMAGE_BLOCKS = """<!-- wp:paragraph -->
<p>some text</p>
<!-- /wp:paragraph -->

<!-- wp:paragraph -->
<p>some text</p>
<!-- /wp:paragraph -->"""


class FakeContentStore:
    def __init__(self, documents: List[Document]) -> None:
        self.documents = {doc.id: doc for doc in documents}
        self.updates: Dict[int, str] = {}
        self.fetch_calls = 0

    def fetch_documents(self, selection, post_types, post_statuses):
        self.fetch_calls += 1
        return [
            Document(doc.id, doc.content, doc.post_type, doc.status)
            for doc in sorted(self.documents.values(), key=lambda d: d.id)
            if doc.post_type in post_types
            and doc.status in post_statuses
            and (selection is None or selection.includes(doc.id))
        ]

    def update_content(self, doc_id: int, content: str) -> None:
        self.updates[doc_id] = content
        self.documents[doc_id].content = content


class FakeMediaStore:
    BASE_URL = "https://site.test/wp-content/uploads"

    def __init__(self, urls: Optional[Dict[int, str]] = None) -> None:
        self.urls: Dict[int, str] = dict(urls or {})
        self.featured: Dict[int, int] = {}
        self.imports: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self.deleted: List[int] = []
        self.next_id = 100

    def _import(self, kind, location, title, alt, doc_id):
        self.imports.append((kind, location, title, alt, doc_id))
        if location in self.failures:
            raise self.failures[location]
        asset_id = self.next_id
        self.next_id += 1
        name = location.split("?", 1)[0].rsplit("/", 1)[-1]
        self.urls[asset_id] = f"{self.BASE_URL}/{name}"
        return asset_id

    def list_assets(self):
        return [MediaAsset(asset_id, "", url) for asset_id, url in sorted(self.urls.items())]

    def import_from_local_path(self, path, title, alt, doc_id):
        return self._import("local", path, title, alt, doc_id)

    def import_from_url(self, url, title, alt, doc_id):
        return self._import("url", url, title, alt, doc_id)

    def canonical_url(self, asset_id):
        return self.urls.get(asset_id)

    def file_path(self, asset_id):
        return None

    def delete_asset(self, asset_id):
        self.deleted.append(asset_id)
        self.urls.pop(asset_id, None)

    def get_featured_image_id(self, doc_id):
        return self.featured.get(doc_id)

    def set_featured_image_id(self, doc_id, asset_id):
        self.featured[doc_id] = asset_id


class StubResponse:
    def __init__(self, body: bytes, status_code: int = 200, content_type: str = "image/png") -> None:
        self.body = body
        self.status_code = status_code
        self.headers = {"Content-Type": content_type}

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start : start + chunk_size]

    def close(self) -> None:
        pass


class StubSession:
    def __init__(self, responses) -> None:
        self.responses = responses
        self.requested: List[str] = []

    def get(self, url, timeout=None, stream=False):
        self.requested.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def write_media_library(root: Path, base_files: Dict[int, tuple], featured: Optional[Dict[int, int]] = None) -> None:
    """Seed a DirectoryMediaStore root with {id: (filename, bytes)} assets."""
    uploads = root / "uploads"
    uploads.mkdir(parents=True, exist_ok=True)
    assets = {}
    for asset_id, (filename, data) in base_files.items():
        (uploads / filename).write_bytes(data)
        assets[str(asset_id)] = {"file": filename, "title": "", "alt": "", "parent": 0}
    manifest = {
        "next_id": max(base_files, default=0) + 1,
        "assets": assets,
        "featured": {str(doc_id): asset_id for doc_id, asset_id in (featured or {}).items()},
    }
    (root / "media.json").write_text(json.dumps(manifest), encoding="utf-8")


def write_posts(path: Path, posts: List[dict]) -> None:
    path.write_text(json.dumps(posts), encoding="utf-8")


