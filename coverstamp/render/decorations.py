from __future__ import annotations

from typing import Iterable

from coverstamp.models import CircleDecoration, Decoration, LineDecoration, RectDecoration
from coverstamp.render.colors import parse_color
from coverstamp.render.surface import Surface


def draw_decorations(surface: Surface, decorations: Iterable[Decoration]) -> None:
    for decoration in decorations:
        color = parse_color(decoration.color)
        if isinstance(decoration, CircleDecoration):
            surface.fill_circle(decoration.x, decoration.y, decoration.radius, color)
        elif isinstance(decoration, RectDecoration):
            box = (
                decoration.x,
                decoration.y,
                decoration.x + decoration.width,
                decoration.y + decoration.height,
            )
            surface.fill_rect(box, color, radius=decoration.radius)
        elif isinstance(decoration, LineDecoration):
            surface.stroke_line(
                (decoration.x1, decoration.y1),
                (decoration.x2, decoration.y2),
                color,
                width=decoration.stroke_width,
            )
