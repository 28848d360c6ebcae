# Drawing surface: every operation takes its own color/font/alignment, nothing is carried between calls.
from __future__ import annotations

import math
from typing import Sequence

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from coverstamp.render.colors import RGBA, mix
from coverstamp.render.typography import text_length

Box = tuple[float, float, float, float]

_GRADIENT_SAMPLES = 1024
_GRADIENT_PAD = 2
_OBLIQUE_SHEAR = 0.2
_ANCHOR_X = {"left": "l", "center": "m", "right": "r"}


def gradient_color_at(stops: Sequence[tuple[float, RGBA]], t: float) -> RGBA:
    """Color of a linear gradient at ``t``; values outside the stops are padded."""
    if not stops:
        return (0, 0, 0, 0)
    if t <= stops[0][0]:
        return stops[0][1]
    for (left_offset, left_color), (right_offset, right_color) in zip(stops, stops[1:]):
        if t <= right_offset:
            span = right_offset - left_offset
            if span <= 0:
                return right_color
            return mix(left_color, right_color, (t - left_offset) / span)
    return stops[-1][1]


def cover_geometry(
    image_width: int,
    image_height: int,
    canvas_width: int,
    canvas_height: int,
) -> tuple[float, float, float, float, float]:
    """Return ``(scale, x, y, width, height)`` that covers the canvas, centered."""
    scale = max(canvas_width / float(image_width), canvas_height / float(image_height))
    width = image_width * scale
    height = image_height * scale
    return scale, (canvas_width - width) / 2.0, (canvas_height - height) / 2.0, width, height


class Surface:
    """RGBA canvas with explicit, stateless drawing operations.

    Every shape is rendered onto its own transparent layer and alpha-composited,
    so translucent colors blend with what is already on the canvas.
    """

    def __init__(self, width: int, height: int, color: RGBA = (0, 0, 0, 0)) -> None:
        self._image = Image.new("RGBA", (int(width), int(height)), color)

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def size(self) -> tuple[int, int]:
        return self._image.size

    def to_image(self, mode: str = "RGB") -> Image.Image:
        return self._image.convert(mode)

    def _layer(self) -> tuple[Image.Image, ImageDraw.ImageDraw]:
        layer = Image.new("RGBA", self._image.size, (0, 0, 0, 0))
        return layer, ImageDraw.Draw(layer)

    def _composite(self, layer: Image.Image) -> None:
        self._image.alpha_composite(layer)

    def fill(self, color: RGBA) -> None:
        layer = Image.new("RGBA", self._image.size, color)
        self._composite(layer)

    def fill_rect(self, box: Box, color: RGBA, *, radius: float = 0) -> None:
        layer, draw = self._layer()
        _draw_rect(draw, box, fill=color, radius=radius)
        self._composite(layer)

    def stroke_rect(self, box: Box, color: RGBA, *, width: float = 1, radius: float = 0) -> None:
        layer, draw = self._layer()
        _draw_rect(draw, box, outline=color, width=max(1, int(round(width))), radius=radius)
        self._composite(layer)

    def fill_circle(self, cx: float, cy: float, radius: float, color: RGBA) -> None:
        layer, draw = self._layer()
        draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=color)
        self._composite(layer)

    def stroke_line(self, start: tuple[float, float], end: tuple[float, float], color: RGBA, *, width: float = 1) -> None:
        layer, draw = self._layer()
        draw.line([start, end], fill=color, width=max(1, int(round(width))))
        self._composite(layer)

    def drop_shadow(self, box: Box, color: RGBA, *, blur: float, offset_y: float = 0, radius: float = 0) -> None:
        left, top, right, bottom = box
        layer, draw = self._layer()
        _draw_rect(draw, (left, top + offset_y, right, bottom + offset_y), fill=color, radius=radius)
        if blur > 0:
            # a canvas shadowBlur of N is roughly a gaussian with sigma N/2
            layer = layer.filter(ImageFilter.GaussianBlur(radius=blur / 2.0))
        self._composite(layer)

    def fill_linear_gradient(
        self,
        start: tuple[float, float],
        end: tuple[float, float],
        stops: Sequence[tuple[float, RGBA]],
    ) -> None:
        width, height = self._image.size
        x1, y1 = start
        dx = end[0] - x1
        dy = end[1] - y1
        length_sq = dx * dx + dy * dy
        if length_sq <= 0:
            self.fill(gradient_color_at(stops, 0.0))
            return

        # t is affine in (x, y); its extremes over the canvas sit on the corners
        def position(x: float, y: float) -> float:
            return ((x - x1) * dx + (y - y1) * dy) / length_sq

        corners = [position(x, y) for x in (0, width) for y in (0, height)]
        t_min, t_max = min(corners), max(corners)
        span = max(t_max - t_min, 1e-9)

        samples = _GRADIENT_SAMPLES
        ramp_colors = [gradient_color_at(stops, t_min + span * i / (samples - 1)) for i in range(samples)]
        ramp_colors = [ramp_colors[0]] * _GRADIENT_PAD + ramp_colors + [ramp_colors[-1]] * _GRADIENT_PAD
        ramp = Image.new("RGBA", (len(ramp_colors), 3))
        ramp.putdata(ramp_colors * 3)

        scale = (samples - 1) / span
        a = dx / length_sq * scale
        b = dy / length_sq * scale
        c = (-(x1 * dx + y1 * dy) / length_sq - t_min) * scale + _GRADIENT_PAD
        layer = ramp.transform(
            (width, height),
            Image.Transform.AFFINE,
            (a, b, c, 0, 0, 1.5),
            resample=Image.Resampling.BILINEAR,
        )
        self._composite(layer)

    def draw_image_cover(self, image: Image.Image) -> None:
        source = image.convert("RGBA")
        _scale, x, y, width, height = cover_geometry(source.width, source.height, self.width, self.height)
        scaled = source.resize(
            (max(self.width, int(math.ceil(width))), max(self.height, int(math.ceil(height)))),
            Image.Resampling.LANCZOS,
        )
        left = max(0, int(round(-x)))
        top = max(0, int(round(-y)))
        cropped = scaled.crop((left, top, left + self.width, top + self.height))
        self._composite(cropped)

    def measure_text(self, text: str, font: ImageFont.FreeTypeFont, *, letter_spacing: float = 0) -> float:
        return text_length(text, font, letter_spacing)

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        font: ImageFont.FreeTypeFont,
        color: RGBA,
        align: str = "left",
        letter_spacing: float = 0,
        oblique: bool = False,
    ) -> None:
        """Draw one line with ``y`` at the vertical middle of the text."""
        if not text:
            return
        layer, draw = self._layer()
        anchor_x = _ANCHOR_X.get(align, "l")
        if letter_spacing:
            total = text_length(text, font, letter_spacing)
            if anchor_x == "m":
                cursor = x - total / 2.0
            elif anchor_x == "r":
                cursor = x - total
            else:
                cursor = x
            for char in text:
                draw.text((cursor, y), char, font=font, fill=color, anchor="lm")
                cursor += float(font.getlength(char)) + letter_spacing
        else:
            draw.text((x, y), text, font=font, fill=color, anchor=f"{anchor_x}m")
        if oblique:
            # shear around the text's middle row so the line keeps its position
            layer = layer.transform(
                layer.size,
                Image.Transform.AFFINE,
                (1, _OBLIQUE_SHEAR, -_OBLIQUE_SHEAR * y, 0, 1, 0),
                resample=Image.Resampling.BICUBIC,
            )
        self._composite(layer)


def _draw_rect(
    draw: ImageDraw.ImageDraw,
    box: Box,
    *,
    fill: RGBA | None = None,
    outline: RGBA | None = None,
    width: int = 1,
    radius: float = 0,
) -> None:
    left, top, right, bottom = box
    if right < left or bottom < top:
        return
    # ImageDraw boxes are inclusive of the bottom-right pixel
    shape = (left, top, max(left, right - 1), max(top, bottom - 1))
    if radius > 0:
        corner = int(round(min(radius, (right - left) / 2.0, (bottom - top) / 2.0)))
        draw.rounded_rectangle(shape, radius=corner, fill=fill, outline=outline, width=width)
    else:
        draw.rectangle(shape, fill=fill, outline=outline, width=width)
