import logging
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from post_image_downloader.errors import FailureKind, ImageImportError  # noqa: E402


@pytest.fixture
def isolate_logging():
    """Keep logging.basicConfig(force=True) in the CLI from leaking between tests."""
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level
    yield
    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)


@pytest.fixture
def import_failure():
    def _make(kind: FailureKind, message: str = "boom") -> ImageImportError:
        return ImageImportError(message, kind)

    return _make
