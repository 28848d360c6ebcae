from __future__ import annotations

import logging
import math

from PIL import Image, ImageOps

from coverstamp.constants import FALLBACK_GRADIENT_STOPS
from coverstamp.errors import TemplateAssetError
from coverstamp.models import Background, GradientBackground, ImageBackground, SolidBackground
from coverstamp.render.colors import parse_color
from coverstamp.render.surface import Surface

LOGGER = logging.getLogger(__name__)


def gradient_coords(angle: float, width: float, height: float) -> tuple[float, float, float, float]:
    """Start/end points for ``angle`` degrees, centered on the canvas and spanning it.

    0 degrees runs left to right along the horizontal axis, 90 runs top to bottom.
    """
    rad = math.radians(angle)
    half_dx = math.cos(rad) * width / 2.0
    half_dy = math.sin(rad) * height / 2.0
    cx = width / 2.0
    cy = height / 2.0
    return (cx - half_dx, cy - half_dy, cx + half_dx, cy + half_dy)


def _load_template_asset(background: ImageBackground) -> Image.Image:
    try:
        with Image.open(background.path) as image:
            return ImageOps.exif_transpose(image).convert("RGBA")
    except (OSError, ValueError) as exc:
        raise TemplateAssetError(f"template background {background.path} could not be loaded: {exc}") from exc


def _paint_fallback_gradient(surface: Surface) -> None:
    stops = [(offset, parse_color(color)) for offset, color in FALLBACK_GRADIENT_STOPS]
    surface.fill_linear_gradient((0, 0), (surface.width, surface.height), stops)


def draw_background(surface: Surface, background: Background, *, bg_image: Image.Image | None = None) -> None:
    if bg_image is not None:
        surface.draw_image_cover(bg_image)
        return

    if isinstance(background, SolidBackground):
        surface.fill(parse_color(background.color))
    elif isinstance(background, GradientBackground):
        x1, y1, x2, y2 = gradient_coords(background.angle, surface.width, surface.height)
        stops = [(stop.offset, parse_color(stop.color)) for stop in background.stops]
        surface.fill_linear_gradient((x1, y1), (x2, y2), stops)
    elif isinstance(background, ImageBackground):
        try:
            image = _load_template_asset(background)
        except TemplateAssetError as exc:
            LOGGER.warning("%s; using fallback gradient", exc)
            _paint_fallback_gradient(surface)
        else:
            surface.draw_image_cover(image)
