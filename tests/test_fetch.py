import threading
import time

import httpx
import pytest

from coverstamp.config import DEFAULT_CONFIG
from coverstamp.errors import BackgroundFetchError
from coverstamp.fetch import decode_inline_image, fetch_image_bytes, load_request_background


def _client(red_png: bytes) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old.png":
            return httpx.Response(302, headers={"Location": "https://img.example.test/new.png"})
        if request.url.path == "/new.png":
            return httpx.Response(200, content=red_png, headers={"Content-Type": "image/png"})
        if request.url.path == "/down":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(404)

    return httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)


def test_fetch_follows_redirects(red_png: bytes) -> None:
    with _client(red_png) as client:
        assert fetch_image_bytes("https://img.example.test/old.png", client=client) == red_png


def test_fetch_sends_browser_user_agent(red_png: bytes) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["User-Agent"])
        return httpx.Response(200, content=red_png)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        fetch_image_bytes("https://img.example.test/a.png", client=client, user_agent="CoverStampTest/1")
    assert seen == ["CoverStampTest/1"]


def test_fetch_non_success_status_fails(red_png: bytes) -> None:
    with _client(red_png) as client:
        with pytest.raises(BackgroundFetchError, match="Failed to fetch image: 404"):
            fetch_image_bytes("https://img.example.test/missing.png", client=client)


def test_fetch_network_error_is_wrapped(red_png: bytes) -> None:
    with _client(red_png) as client:
        with pytest.raises(BackgroundFetchError, match="Request error"):
            fetch_image_bytes("https://img.example.test/down", client=client)


def test_fetch_rejects_oversized_body(red_png: bytes) -> None:
    with _client(red_png) as client:
        with pytest.raises(BackgroundFetchError, match="exceeds"):
            fetch_image_bytes("https://img.example.test/new.png", client=client, max_bytes=16)


def test_fetch_rejects_unsupported_scheme() -> None:
    with pytest.raises(BackgroundFetchError, match="unsupported scheme"):
        fetch_image_bytes("file:///etc/passwd")


def test_decode_inline_image_accepts_data_url(red_png_base64: str) -> None:
    image = decode_inline_image(f"data:image/png;base64,{red_png_base64}")
    assert image.size == (64, 32)
    assert image.mode == "RGBA"
    assert decode_inline_image(red_png_base64).getpixel((0, 0)) == (255, 0, 0, 255)


def test_decode_inline_image_rejects_bad_payloads() -> None:
    with pytest.raises(BackgroundFetchError, match="Base64"):
        decode_inline_image("not base64 at all!")
    with pytest.raises(BackgroundFetchError, match="Base64"):
        decode_inline_image("aGVsbG8gd29ybGQ=")


def test_inline_background_wins_over_url(red_png_base64: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("url must not be fetched")

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        image = load_request_background(
            url="https://img.example.test/new.png",
            inline=red_png_base64,
            config=DEFAULT_CONFIG,
            client=client,
        )
    assert image is not None
    assert image.size == (64, 32)


def test_no_background_requested() -> None:
    assert load_request_background(url=None, inline=None, config=DEFAULT_CONFIG) is None


def test_cancelled_fetch(red_png: bytes) -> None:
    cancel = threading.Event()
    cancel.set()
    with _client(red_png) as client:
        with pytest.raises(BackgroundFetchError, match="cancelled"):
            load_request_background(
                url="https://img.example.test/new.png",
                inline=None,
                config=DEFAULT_CONFIG,
                client=client,
                cancel_event=cancel,
            )


class _DripStream(httpx.SyncByteStream):
    def __init__(self, pieces: int, delay: float) -> None:
        self.pieces = pieces
        self.delay = delay

    def __iter__(self):
        for _ in range(self.pieces):
            time.sleep(self.delay)
            yield b"x"


def test_fetch_enforces_overall_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=_DripStream(pieces=12, delay=0.2))

    started = time.monotonic()
    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(BackgroundFetchError, match="timed out"):
            fetch_image_bytes("https://img.example.test/slow.png", client=client, timeout=0.5)
    assert time.monotonic() - started < 1.5
