import copy
from pathlib import Path

import pytest

from coverstamp.models import CircleDecoration, LineDecoration, RectDecoration
from coverstamp.render.decorations import draw_decorations
from coverstamp.render.surface import Surface
from coverstamp.template_loader import normalize_template_dict

BLACK = (0, 0, 0, 255)


def _render(*decorations) -> Surface:
    surface = Surface(100, 100, BLACK)
    draw_decorations(surface, decorations)
    return surface


def test_circle_is_filled_disc() -> None:
    image = _render(CircleDecoration(x=30, y=30, radius=10, color="#ff0000")).to_image()
    assert image.getpixel((30, 30)) == (255, 0, 0)
    assert image.getpixel((36, 30)) == (255, 0, 0)
    assert image.getpixel((45, 30)) == (0, 0, 0)


def test_rect_corners_square_and_rounded() -> None:
    square = _render(RectDecoration(x=50, y=50, width=40, height=40, color="#00ff00")).to_image()
    assert square.getpixel((50, 50)) == (0, 255, 0)
    assert square.getpixel((89, 89)) == (0, 255, 0)
    assert square.getpixel((90, 90)) == (0, 0, 0)

    rounded = _render(RectDecoration(x=50, y=50, width=40, height=40, color="#00ff00", radius=10)).to_image()
    assert rounded.getpixel((50, 50)) == (0, 0, 0)
    assert rounded.getpixel((70, 70)) == (0, 255, 0)
    assert rounded.getpixel((70, 50)) == (0, 255, 0)


def test_line_uses_default_stroke_width() -> None:
    line = LineDecoration(x1=0, y1=10, x2=99, y2=10, color="#0000ff")
    assert line.stroke_width == 1
    image = _render(line).to_image()
    assert image.getpixel((50, 10)) == (0, 0, 255)
    assert image.getpixel((50, 12)) == (0, 0, 0)
    assert image.getpixel((50, 8)) == (0, 0, 0)


def test_decorations_overdraw_in_list_order() -> None:
    red = RectDecoration(x=10, y=10, width=50, height=50, color="#ff0000")
    blue = RectDecoration(x=40, y=40, width=50, height=50, color="#0000ff")
    assert _render(red, blue).to_image().getpixel((50, 50)) == (0, 0, 255)
    assert _render(blue, red).to_image().getpixel((50, 50)) == (255, 0, 0)
    assert _render(red, blue).to_image().getpixel((20, 20)) == (255, 0, 0)


def test_decoration_color_defaults_to_translucent_white(tmp_path: Path) -> None:
    data = {
        "id": "dotted",
        "preview": {"bg_gradient": ["#000000", "#111111"], "accent_color": "#ffffff"},
        "canvas": {"width": 100, "height": 100},
        "background": {"type": "solid", "color": "#000000"},
        "decorations": [{"type": "circle", "x": 50, "y": 50, "radius": 20}],
        "category": {"font": {"size": 12}, "color": "#ffffff"},
        "title": {"font": {"size": 24}, "color": "#ffffff"},
    }
    template = normalize_template_dict(copy.deepcopy(data), tmp_path)
    (circle,) = template.decorations
    assert circle.color == "rgba(255, 255, 255, 0.1)"

    pixel = _render(circle).to_image().getpixel((50, 50))
    assert pixel == pytest.approx((26, 26, 26), abs=1)
