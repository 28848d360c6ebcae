from __future__ import annotations

from io import BytesIO
from pathlib import Path

from PIL import Image

from coverstamp.constants import DEFAULT_OUTPUT_FORMAT, DEFAULT_QUALITY, OUTPUT_FORMATS
from coverstamp.errors import ValidationError


def resolve_output_format(fmt: str | None) -> tuple[str, str]:
    """Map a user-facing format name to ``(extension, pil_format)``."""
    f = (fmt or DEFAULT_OUTPUT_FORMAT).lower().lstrip(".")
    pil_format = OUTPUT_FORMATS.get(f)
    if pil_format is None:
        raise ValidationError(f"output format must be webp, png or jpeg, got: {fmt!r}")
    ext = "jpg" if pil_format == "JPEG" else f
    return ext, pil_format


def encode_image(image: Image.Image, fmt: str = DEFAULT_OUTPUT_FORMAT, quality: int = DEFAULT_QUALITY) -> bytes:
    _, pil_format = resolve_output_format(fmt)
    q = max(1, min(100, int(quality)))
    rgb = image.convert("RGB")
    buffer = BytesIO()
    if pil_format == "JPEG":
        rgb.save(buffer, format="JPEG", quality=q, optimize=True, progressive=True)
    elif pil_format == "WEBP":
        rgb.save(buffer, format="WEBP", quality=q)
    else:
        rgb.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def save_output(directory: Path, filename: str, data: bytes) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_bytes(data)
    return path
