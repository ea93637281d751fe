"""Image downloading, type detection and hashing utilities."""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import requests
from filetype import guess

from .errors import FailureKind, ImageImportError

logger = logging.getLogger("post_image_downloader")

ALLOWED_IMAGE_TYPES = {"png", "jpg", "jpeg", "gif", "webp", "bmp", "tiff", "tif", "svg", "ico", "avif", "heic"}
DOWNLOAD_CHUNK_BYTES = 64 * 1024
HASH_CHUNK_BYTES = 1024 * 1024


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def infer_image_extension(content_type: Optional[str], data: bytes) -> Optional[str]:
    """Guess an image file extension from the file signature or HTTP metadata."""
    detected = detect_image_format(data)
    if detected:
        return detected
    if not content_type:
        return None
    parts = content_type.split(";")[0].split("/")
    if len(parts) == 2 and parts[0].strip().lower() == "image":
        ext = parts[1].strip().lower()
        if ext == "jpeg":
            ext = "jpg"
        elif ext == "svg+xml":
            ext = "svg"
        return ext
    return None


def read_signature(path: Path, size: int = 262) -> bytes:
    """Read the leading bytes filetype needs to recognise a file."""
    with path.open("rb") as handle:
        return handle.read(size)


def download_image(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0,
) -> tuple[Path, Optional[str]]:
    """Stream `url` into a temporary file and return its path and Content-Type.

    The caller owns the temporary file and must remove it.
    """
    session = session or requests.Session()
    try:
        resp = session.get(url, timeout=timeout, stream=True)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise ImageImportError(str(exc), FailureKind.DOWNLOAD) from exc

    fd, tmp_name = tempfile.mkstemp(prefix="post-image-", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_BYTES):
                if chunk:
                    handle.write(chunk)
    except (requests.RequestException, OSError) as exc:
        tmp_path.unlink(missing_ok=True)
        raise ImageImportError(f"Failed to fetch image {url}: {exc}", FailureKind.DOWNLOAD) from exc
    finally:
        resp.close()

    logger.debug("Downloaded %s to %s", url, tmp_path)
    return tmp_path, resp.headers.get("Content-Type")


def hash_file(path: Path) -> str:
    """Return the SHA-256 hex digest of the whole file."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(HASH_CHUNK_BYTES), b""):
            digest.update(chunk)
    return digest.hexdigest()
