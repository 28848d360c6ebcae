from __future__ import annotations

import re
import threading
import time

from coverstamp.constants import OUTPUT_PREFIX

INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')

_ID_LOCK = threading.Lock()
_last_id = 0


def sanitize_token(value: str | None, fallback: str = "NA") -> str:
    text = (value or "").strip()
    if not text:
        text = fallback
    text = INVALID_FILENAME_CHARS.sub("_", text)
    text = re.sub(r"\s+", "_", text)
    text = text.strip(" ._")
    return text or fallback


def next_output_id() -> int:
    """Millisecond timestamp, bumped so that no two calls share an id."""
    global _last_id
    with _ID_LOCK:
        candidate = time.time_ns() // 1_000_000
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
        return candidate


def build_output_name(prefix: str = OUTPUT_PREFIX, extension: str = "webp") -> str:
    ext = extension.lower().lstrip(".")
    stem = sanitize_token(prefix, fallback=OUTPUT_PREFIX)
    return f"{stem}-{next_output_id()}.{ext}"
