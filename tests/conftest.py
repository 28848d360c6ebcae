import base64
from io import BytesIO

import pytest
from PIL import Image


def _png_bytes(color: tuple[int, int, int], size: tuple[int, int] = (64, 32)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def red_png() -> bytes:
    return _png_bytes((255, 0, 0))


@pytest.fixture
def red_png_base64(red_png: bytes) -> str:
    return base64.b64encode(red_png).decode("ascii")
