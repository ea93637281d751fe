"""Failure kinds raised while resolving and importing images."""

from __future__ import annotations

from enum import Enum


class FailureKind(Enum):
    """Why a single image reference could not be imported."""

    NO_DEFAULT_HOST = "no_default_host"
    DOWNLOAD = "download"
    IMPORT = "import"
    OTHER = "other"


class ImageImportError(RuntimeError):
    """Recoverable failure tied to one image reference."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.OTHER) -> None:
        super().__init__(message)
        self.kind = kind


class InvalidInvocation(ValueError):
    """Option combination that must abort a run before any processing."""
