"""Append-only per-channel log files kept for later manual retries."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger("post_image_downloader")

LOG_FILES_EXTENSION = ".log"


class LogChannel(Enum):
    DOWNLOAD_SUCCESS = "imagedownloader__download"
    DOWNLOAD_FAILED = "imagedownloader__err_download"
    IMPORT_FAILED = "imagedownloader__err_import"
    MISSING_DEFAULT_HOST = "imagedownloader__err_downloading_reference"
    OTHER_ERROR = "imagedownloader__err_other"
    DEDUPLICATION = "imagedownloader__deduplication"


IMPORT_CHANNELS = (
    LogChannel.DOWNLOAD_SUCCESS,
    LogChannel.DOWNLOAD_FAILED,
    LogChannel.IMPORT_FAILED,
    LogChannel.MISSING_DEFAULT_HOST,
    LogChannel.OTHER_ERROR,
)


class LogSink:
    """Writes one text file per channel, suffixed with the active id range."""

    def __init__(
        self,
        directory: Path,
        id_from: Optional[int] = None,
        id_to: Optional[int] = None,
    ) -> None:
        self.directory = Path(directory)
        self.id_from = id_from
        self.id_to = id_to

    def path(self, channel: LogChannel) -> Path:
        name = channel.value
        if self.id_from is not None and self.id_to is not None:
            name = f"{name}_{self.id_from}-{self.id_to}"
        return self.directory / f"{name}{LOG_FILES_EXTENSION}"

    def flush(self, channels: Iterable[LogChannel]) -> None:
        """Remove log files left over from a previous run."""
        for channel in channels:
            self.path(channel).unlink(missing_ok=True)

    def write(self, channel: LogChannel, message: str) -> None:
        path = self.path(channel)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(message + "\n")

    def has_entries(self, channel: LogChannel) -> bool:
        path = self.path(channel)
        return path.exists() and path.stat().st_size > 0

    def read(self, channel: LogChannel) -> list[str]:
        if not self.has_entries(channel):
            return []
        return self.path(channel).read_text(encoding="utf-8").splitlines()
