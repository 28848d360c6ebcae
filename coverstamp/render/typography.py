from __future__ import annotations

import logging
import math
import os
import platform
from functools import lru_cache
from pathlib import Path
from typing import Callable, Iterator

from PIL import ImageFont

from coverstamp.constants import (
    TITLE_MAX_LINES,
    TITLE_MIN_SIZE,
    TITLE_MIN_SIZE_RATIO,
    TITLE_SIZE_STEP,
)
from coverstamp.models import FontSpec, TitleLayout

LOGGER = logging.getLogger(__name__)

_FONT_FILE_SUFFIXES = {".ttf", ".ttc", ".otf", ".otc"}

_SERIF_FAMILIES = {"serif", "georgia", "times new roman", "times", "garamond", "palatino"}

# (generic, bold, italic) -> file names in preference order.
_FACE_FILES: dict[tuple[str, bool, bool], tuple[str, ...]] = {
    ("sans", False, False): ("arial.ttf", "DejaVuSans.ttf", "LiberationSans-Regular.ttf", "Helvetica.ttc"),
    ("sans", True, False): ("arialbd.ttf", "Arial Bold.ttf", "DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf"),
    ("sans", False, True): ("ariali.ttf", "Arial Italic.ttf", "DejaVuSans-Oblique.ttf", "LiberationSans-Italic.ttf"),
    ("sans", True, True): (
        "arialbi.ttf",
        "Arial Bold Italic.ttf",
        "DejaVuSans-BoldOblique.ttf",
        "LiberationSans-BoldItalic.ttf",
    ),
    ("serif", False, False): ("georgia.ttf", "Georgia.ttf", "DejaVuSerif.ttf", "LiberationSerif-Regular.ttf"),
    ("serif", True, False): ("georgiab.ttf", "Georgia Bold.ttf", "DejaVuSerif-Bold.ttf", "LiberationSerif-Bold.ttf"),
    ("serif", False, True): (
        "georgiai.ttf",
        "Georgia Italic.ttf",
        "DejaVuSerif-Italic.ttf",
        "LiberationSerif-Italic.ttf",
    ),
    ("serif", True, True): (
        "georgiaz.ttf",
        "Georgia Bold Italic.ttf",
        "DejaVuSerif-BoldItalic.ttf",
        "LiberationSerif-BoldItalic.ttf",
    ),
}


def _system_font_candidates() -> list[Path]:
    system = platform.system().lower()
    if "windows" in system:
        return [
            Path(r"C:\Windows\Fonts\arial.ttf"),
            Path(r"C:\Windows\Fonts\segoeui.ttf"),
        ]
    if "darwin" in system:
        return [
            Path("/System/Library/Fonts/Helvetica.ttc"),
            Path("/Library/Fonts/Arial Unicode.ttf"),
        ]
    return [
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
        Path("/usr/share/fonts/TTF/DejaVuSans.ttf"),
        Path("/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf"),
    ]


def _system_font_directories() -> list[Path]:
    system = platform.system().lower()
    roots: list[Path] = []
    if "windows" in system:
        windows_dir = Path(os.environ.get("WINDIR", r"C:\Windows"))
        roots.append(windows_dir / "Fonts")
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            roots.append(Path(local_app_data) / "Microsoft" / "Windows" / "Fonts")
    elif "darwin" in system:
        roots.extend(
            [
                Path("/System/Library/Fonts"),
                Path("/System/Library/Fonts/Supplemental"),
                Path("/Library/Fonts"),
                Path.home() / "Library" / "Fonts",
            ]
        )
    else:
        roots.extend(
            [
                Path("/usr/share/fonts"),
                Path("/usr/local/share/fonts"),
                Path.home() / ".fonts",
                Path.home() / ".local" / "share" / "fonts",
            ]
        )
    return roots


@lru_cache(maxsize=1)
def list_available_font_paths() -> list[Path]:
    available: list[Path] = []
    seen: set[str] = set()

    for root in _system_font_directories():
        if not root.is_dir():
            continue
        for dir_path, _dir_names, file_names in os.walk(root, onerror=lambda _err: None):
            for file_name in file_names:
                if Path(file_name).suffix.lower() not in _FONT_FILE_SUFFIXES:
                    continue
                candidate = Path(dir_path) / file_name
                key = str(candidate)
                if key in seen:
                    continue
                seen.add(key)
                available.append(candidate)

    available.sort(key=lambda path: (path.stem.lower(), str(path).lower()))
    return available


@lru_cache(maxsize=1)
def _fonts_by_name() -> dict[str, Path]:
    index: dict[str, Path] = {}
    for path in list_available_font_paths():
        index.setdefault(path.name.lower(), path)
    return index


def _generic_family(families: tuple[str, ...]) -> str:
    for family in families:
        name = family.strip().strip("'\"").lower()
        if name in _SERIF_FAMILIES:
            return "serif"
        if name in {"sans-serif", "arial", "helvetica"}:
            return "sans"
    return "sans"


def resolve_face(spec: FontSpec) -> tuple[Path | None, bool]:
    """Find an installed face for ``spec``.

    Returns the font file (or None) and whether an italic was requested but
    only an upright face was found, in which case callers shear the glyphs.
    """
    generic = _generic_family(spec.family)
    index = _fonts_by_name()
    for italic in ((True, False) if spec.italic else (False,)):
        for name in _FACE_FILES[(generic, spec.bold, italic)] + _FACE_FILES[(generic, False, italic)]:
            path = index.get(name.lower())
            if path is not None:
                return path, spec.italic and not italic
    for path in _system_font_candidates():
        if path.exists():
            return path, spec.italic
    return None, spec.italic


def load_font(font_path: Path | None, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    candidates: list[Path] = []
    if font_path:
        candidates.append(font_path)
    candidates.extend(_system_font_candidates())
    for candidate in candidates:
        if candidate.exists():
            try:
                return ImageFont.truetype(str(candidate), size=size)
            except OSError:
                LOGGER.debug("unable to open font %s", candidate)
                continue
    return ImageFont.load_default(size=size)


@lru_cache(maxsize=256)
def load_spec_font(spec: FontSpec, font_path: Path | None = None) -> tuple[ImageFont.FreeTypeFont, bool]:
    """Load a font for ``spec``; an explicit ``font_path`` overrides the lookup."""
    if font_path is not None:
        return load_font(font_path, spec.size), spec.italic
    face, synthetic_italic = resolve_face(spec)
    return load_font(face, spec.size), synthetic_italic


def text_length(text: str, font: ImageFont.FreeTypeFont, letter_spacing: float = 0) -> float:
    width = float(font.getlength(text))
    if letter_spacing and len(text) > 1:
        width += letter_spacing * (len(text) - 1)
    return width


def wrap_words(text: str, max_width: float, measure: Callable[[str], float]) -> list[str]:
    """Greedily pack words into lines no wider than ``max_width``.

    A word that is wider than ``max_width`` on its own gets a line to itself;
    words are never split.
    """
    lines: list[str] = []
    current = ""
    for word in (text or "").split():
        candidate = f"{current} {word}" if current else word
        if current and measure(candidate) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def title_size_floor(nominal: int) -> int:
    return max(int(math.ceil(nominal * TITLE_MIN_SIZE_RATIO)), TITLE_MIN_SIZE)


def title_fit_attempts(
    text: str,
    *,
    font_size: int,
    line_height: float,
    max_width: float,
    max_height: float,
    measure: Callable[[str, int], float],
    max_lines: int = TITLE_MAX_LINES,
    step: int = TITLE_SIZE_STEP,
) -> Iterator[TitleLayout]:
    """Yield each wrap tried while shrinking the title; the last one wins."""
    nominal = int(font_size)
    floor = title_size_floor(nominal)
    size = nominal
    current_line_height = float(line_height)
    while True:
        lines = tuple(wrap_words(text, max_width, lambda value: measure(value, size)))
        yield TitleLayout(font_size=size, line_height=current_line_height, lines=lines)
        if len(lines) <= max_lines and len(lines) * current_line_height <= max_height:
            return
        # at the floor the last wrap is accepted even when it still overflows
        if size <= floor:
            return
        size = max(floor, size - step)
        current_line_height = float(line_height) * (size / nominal)


def fit_title(
    text: str,
    *,
    font_size: int,
    line_height: float,
    max_width: float,
    max_height: float,
    measure: Callable[[str, int], float],
) -> TitleLayout:
    *_, layout = title_fit_attempts(
        text,
        font_size=font_size,
        line_height=line_height,
        max_width=max_width,
        max_height=max_height,
        measure=measure,
    )
    return layout
