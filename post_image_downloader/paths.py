"""Resolution of `<img>` sources into importable locations."""

from __future__ import annotations

import os
from typing import Optional

from .errors import FailureKind, ImageImportError
from .models import PathKind, ResolvedPath
from .utils import url_path


def is_absolute_src(src: str) -> bool:
    return src.lower().startswith("http")


def resolve_image_path(
    src: str,
    local_folder: Optional[str] = None,
    default_host_and_schema: Optional[str] = None,
) -> ResolvedPath:
    """Return the local file or remote URL an image should be imported from.

    A file found under ``local_folder`` always wins over a remote download.
    Relative sources, including ones like ``data:`` URIs that are not really
    paths, are joined to ``default_host_and_schema``; without it they cannot
    be fetched and :class:`ImageImportError` is raised with
    ``FailureKind.NO_DEFAULT_HOST``.
    """
    if local_folder:
        candidate = local_folder + "/" + url_path(src).lstrip("/")
        if os.path.isfile(candidate):
            return ResolvedPath(PathKind.LOCAL, candidate)

    if is_absolute_src(src):
        return ResolvedPath(PathKind.REMOTE, src)

    if not default_host_and_schema:
        raise ImageImportError(
            f"Could not download src {src} since no `--default-image-host-and-schema` was provided.",
            FailureKind.NO_DEFAULT_HOST,
        )

    separator = "" if src.startswith("/") else "/"
    return ResolvedPath(PathKind.REMOTE, default_host_and_schema + separator + src)
