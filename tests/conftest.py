import io

import pytest
from PIL import Image

from app import create_app


def _image_bytes(size=(100, 100), fmt="PNG", mode="RGB", color=(200, 30, 30)):
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    im = Image.new(mode, size, color)
    buf = io.BytesIO()
    im.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_image():
    """Factory returning encoded image bytes."""
    return _image_bytes


@pytest.fixture
def png_bytes():
    return _image_bytes()


@pytest.fixture
def corrupt_bytes():
    return b"this is not an image at all"


@pytest.fixture
def flask_app(tmp_path):
    return create_app({
        "TESTING": True,
        "STATIC_FOLDER": str(tmp_path / "build"),
        "BATCH_POLICY": "fail_fast",
    })


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()
