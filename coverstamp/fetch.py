from __future__ import annotations

import base64
import binascii
import logging
import threading
import time
from io import BytesIO
from urllib.parse import urlparse

import httpx
from PIL import Image, ImageOps

from coverstamp.constants import (
    BROWSER_USER_AGENT,
    FETCH_MAX_BYTES,
    FETCH_MAX_REDIRECTS,
    FETCH_TIMEOUT_S,
)
from coverstamp.errors import BackgroundFetchError

LOGGER = logging.getLogger(__name__)


def open_image_bytes(data: bytes, source: str) -> Image.Image:
    try:
        with Image.open(BytesIO(data)) as image:
            return ImageOps.exif_transpose(image).convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise BackgroundFetchError(f"Background image loading failed ({source}): {exc}") from exc


def decode_inline_image(payload: str) -> Image.Image:
    """Decode a base64 image, either bare or as a ``data:`` URL."""
    text = (payload or "").strip()
    if text.startswith("data:"):
        header, _, text = text.partition(",")
        if ";base64" not in header:
            raise BackgroundFetchError("Background image loading failed (Base64): data URL is not base64 encoded")
    text = "".join(text.split())
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise BackgroundFetchError(f"Background image loading failed (Base64): {exc}") from exc
    if not data:
        raise BackgroundFetchError("Background image loading failed (Base64): empty payload")
    return open_image_bytes(data, "Base64")


def fetch_image_bytes(
    url: str,
    *,
    timeout: float = FETCH_TIMEOUT_S,
    max_redirects: int = FETCH_MAX_REDIRECTS,
    max_bytes: int = FETCH_MAX_BYTES,
    user_agent: str = BROWSER_USER_AGENT,
    client: httpx.Client | None = None,
    cancel_event: threading.Event | None = None,
) -> bytes:
    """Download ``url`` following redirects; any non-2xx final response fails."""
    scheme = urlparse(url).scheme.lower()
    if scheme not in {"http", "https"}:
        raise BackgroundFetchError(f"Background image loading failed (URL): unsupported scheme {scheme!r}")

    owns_client = client is None
    if client is None:
        client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            max_redirects=max_redirects,
        )
    headers = {"User-Agent": user_agent, "Accept": "image/*,*/*;q=0.8"}
    chunks: list[bytes] = []
    total = 0
    # overall budget; httpx.Timeout only bounds each connect/read step
    deadline = time.monotonic() + timeout
    try:
        with client.stream("GET", url, headers=headers, follow_redirects=True) as response:
            if not response.is_success:
                raise BackgroundFetchError(
                    f"Failed to fetch image: {response.status_code} {response.reason_phrase}".rstrip()
                )
            declared = response.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > max_bytes:
                raise BackgroundFetchError(f"Failed to fetch image: body of {declared} bytes exceeds {max_bytes}")
            for chunk in response.iter_bytes():
                if cancel_event is not None and cancel_event.is_set():
                    raise BackgroundFetchError("Failed to fetch image: cancelled")
                if time.monotonic() > deadline:
                    raise BackgroundFetchError("Failed to fetch image: timed out")
                total += len(chunk)
                if total > max_bytes:
                    raise BackgroundFetchError(f"Failed to fetch image: body exceeds {max_bytes} bytes")
                chunks.append(chunk)
    except httpx.HTTPError as exc:
        raise BackgroundFetchError(f"Request error: {exc}") from exc
    finally:
        if owns_client:
            client.close()
    return b"".join(chunks)


def load_request_background(
    *,
    url: str | None,
    inline: str | None,
    config: dict,
    client: httpx.Client | None = None,
    cancel_event: threading.Event | None = None,
) -> Image.Image | None:
    """Resolve a caller-supplied background. Inline data wins over the URL."""
    if inline:
        return decode_inline_image(inline)
    if not url:
        return None
    if cancel_event is not None and cancel_event.is_set():
        raise BackgroundFetchError("Failed to fetch image: cancelled")
    LOGGER.info("fetching background image from %s", url)
    data = fetch_image_bytes(
        url,
        timeout=float(config.get("fetch_timeout", FETCH_TIMEOUT_S)),
        max_redirects=int(config.get("max_redirects", FETCH_MAX_REDIRECTS)),
        max_bytes=int(config.get("max_image_bytes", FETCH_MAX_BYTES)),
        user_agent=str(config.get("user_agent") or BROWSER_USER_AGENT),
        client=client,
        cancel_event=cancel_event,
    )
    return open_image_bytes(data, "URL")
