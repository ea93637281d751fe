"""Content and media store collaborators.

The jobs only talk to the :class:`ContentStore` and :class:`MediaStore`
protocols. The JSON and directory backed implementations here keep a site's
posts and uploads on the local filesystem so the command line tool can run
without a CMS behind it.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests

from .errors import FailureKind, ImageImportError
from .hosts import uri_host
from .images import ALLOWED_IMAGE_TYPES, download_image, infer_image_extension, read_signature
from .models import Document, MediaAsset
from .utils import split_filename, url_path

logger = logging.getLogger("post_image_downloader.stores")


class ContentStore(Protocol):
    def fetch_documents(
        self,
        selection: Any,
        post_types: Sequence[str],
        post_statuses: Sequence[str],
    ) -> List[Document]: ...

    def update_content(self, doc_id: int, content: str) -> None: ...


class MediaStore(Protocol):
    def list_assets(self) -> List[MediaAsset]: ...

    def import_from_local_path(self, path: str, title: str, alt: str, doc_id: int) -> int: ...

    def import_from_url(self, url: str, title: str, alt: str, doc_id: int) -> int: ...

    def canonical_url(self, asset_id: int) -> Optional[str]: ...

    def file_path(self, asset_id: int) -> Optional[str]: ...

    def delete_asset(self, asset_id: int) -> None: ...

    def get_featured_image_id(self, doc_id: int) -> Optional[int]: ...

    def set_featured_image_id(self, doc_id: int, asset_id: int) -> None: ...


@dataclass
class SiteSettings:
    """Settings of the site whose content is being processed."""

    site_url: Optional[str] = None

    def site_host(self) -> Optional[str]:
        if not self.site_url:
            return None
        return uri_host(self.site_url)


def _write_json_atomic(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JsonContentStore:
    """Posts kept as a JSON array of ``{id, type, status, content}`` records."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        return json.loads(self.path.read_text(encoding="utf-8"))

    def fetch_documents(
        self,
        selection: Any,
        post_types: Sequence[str],
        post_statuses: Sequence[str],
    ) -> List[Document]:
        documents = []
        for record in self._load():
            doc = Document(
                id=int(record["id"]),
                content=record.get("content", ""),
                post_type=record.get("type", "post"),
                status=record.get("status", "publish"),
            )
            if doc.post_type not in post_types or doc.status not in post_statuses:
                continue
            if selection is not None and not selection.includes(doc.id):
                continue
            documents.append(doc)
        return sorted(documents, key=lambda doc: doc.id)

    def update_content(self, doc_id: int, content: str) -> None:
        records = self._load()
        for record in records:
            if int(record["id"]) == doc_id:
                record["content"] = content
                break
        else:
            raise KeyError(f"Document {doc_id} does not exist")
        _write_json_atomic(self.path, records)
        logger.debug("Saved content of document %d", doc_id)


class DirectoryMediaStore:
    """Media files under ``root/uploads`` with metadata in ``root/media.json``."""

    MANIFEST = "media.json"
    UPLOADS = "uploads"

    def __init__(
        self,
        root: Path,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout
        self.uploads_dir = self.root / self.UPLOADS
        self._manifest = self._load_manifest()

    def _load_manifest(self) -> Dict[str, Any]:
        path = self.root / self.MANIFEST
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
        return {"next_id": 1, "assets": {}, "featured": {}}

    def _save_manifest(self) -> None:
        _write_json_atomic(self.root / self.MANIFEST, self._manifest)

    def _record(self, asset_id: int) -> Optional[Dict[str, Any]]:
        return self._manifest["assets"].get(str(asset_id))

    def list_assets(self) -> List[MediaAsset]:
        assets = []
        for key in sorted(self._manifest["assets"], key=int):
            record = self._manifest["assets"][key]
            assets.append(
                MediaAsset(
                    id=int(key),
                    file_path=str(self.uploads_dir / record["file"]),
                    url=f"{self.base_url}/{record['file']}",
                )
            )
        return assets

    def canonical_url(self, asset_id: int) -> Optional[str]:
        record = self._record(asset_id)
        if record is None:
            return None
        return f"{self.base_url}/{record['file']}"

    def file_path(self, asset_id: int) -> Optional[str]:
        record = self._record(asset_id)
        if record is None:
            return None
        return str(self.uploads_dir / record["file"])

    def _unique_filename(self, filename: str) -> str:
        stem, extension = split_filename(filename)
        suffix = f".{extension}" if extension else ""
        candidate = filename
        counter = 1
        while (self.uploads_dir / candidate).exists():
            candidate = f"{stem}-{counter}{suffix}"
            counter += 1
        return candidate

    def _sideload(self, tmp_path: Path, source: str, title: str, alt: str, doc_id: int, content_type: Optional[str] = None) -> int:
        """Move a temporary file into the uploads folder and register it."""
        filename = os.path.basename(url_path(source)) or "image"
        stem, extension = split_filename(filename)
        try:
            detected = infer_image_extension(content_type, read_signature(tmp_path))
        except OSError as exc:
            raise ImageImportError(f"Could not read {source}: {exc}", FailureKind.IMPORT) from exc
        if not extension:
            extension = detected or ""
            filename = f"{stem}.{extension}" if extension else stem
        if (detected or extension.lower()) not in ALLOWED_IMAGE_TYPES:
            raise ImageImportError(
                f"Sorry, this file type is not permitted for security reasons: {filename}",
                FailureKind.IMPORT,
            )

        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        filename = self._unique_filename(filename)
        try:
            shutil.move(str(tmp_path), self.uploads_dir / filename)
        except OSError as exc:
            raise ImageImportError(f"Could not store {filename}: {exc}", FailureKind.IMPORT) from exc

        asset_id = int(self._manifest["next_id"])
        self._manifest["next_id"] = asset_id + 1
        self._manifest["assets"][str(asset_id)] = {
            "file": filename,
            "title": title,
            "alt": alt,
            "parent": doc_id,
        }
        self._save_manifest()
        logger.debug("Imported %s as attachment %d", source, asset_id)
        return asset_id

    def import_from_local_path(self, path: str, title: str, alt: str, doc_id: int) -> int:
        # The source file is copied first so the original is left in place.
        fd, tmp_name = tempfile.mkstemp(prefix="post-image-", suffix=".tmp")
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            shutil.copyfile(path, tmp_path)
            return self._sideload(tmp_path, path, title, alt, doc_id)
        except OSError as exc:
            raise ImageImportError(f"Could not copy {path}: {exc}", FailureKind.IMPORT) from exc
        finally:
            tmp_path.unlink(missing_ok=True)

    def import_from_url(self, url: str, title: str, alt: str, doc_id: int) -> int:
        tmp_path, content_type = download_image(url, self.session, self.timeout)
        try:
            return self._sideload(tmp_path, url, title, alt, doc_id, content_type)
        finally:
            tmp_path.unlink(missing_ok=True)

    def delete_asset(self, asset_id: int) -> None:
        record = self._manifest["assets"].pop(str(asset_id), None)
        if record is None:
            return
        (self.uploads_dir / record["file"]).unlink(missing_ok=True)
        featured = self._manifest["featured"]
        for doc_id in [key for key, value in featured.items() if value == asset_id]:
            del featured[doc_id]
        self._save_manifest()

    def get_featured_image_id(self, doc_id: int) -> Optional[int]:
        value = self._manifest["featured"].get(str(doc_id))
        return int(value) if value is not None else None

    def set_featured_image_id(self, doc_id: int, asset_id: int) -> None:
        self._manifest["featured"][str(doc_id)] = int(asset_id)
        self._save_manifest()
