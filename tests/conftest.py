import os
import sys
from io import BytesIO
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Qt must never try to reach a display server during the test run.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


def make_png(width: int, height: int, color=(40, 120, 200, 255), corner=None) -> bytes:
    """Return PNG bytes of a solid image, optionally marking the top-left pixel."""

    from PIL import Image

    image = Image.new("RGBA", (width, height), color)
    if corner is not None:
        image.putpixel((0, 0), corner)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_factory():
    return make_png
