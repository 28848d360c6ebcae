from __future__ import annotations

from pathlib import Path

from coverstamp.constants import (
    BADGE_BASE_HEIGHT,
    TEXT_BANNER_INSET,
    TITLE_BANNER_HEIGHT_RATIO,
    TITLE_CANVAS_HEIGHT_RATIO,
    TITLE_DEFAULT_MARGIN,
)
from coverstamp.models import BannerBounds, CategorySpec, SubtitleSpec, TitleLayout, TitleSpec
from coverstamp.render.colors import parse_color
from coverstamp.render.surface import Surface
from coverstamp.render.typography import fit_title, load_spec_font


def _anchor_x(x: float | None, align: str, canvas_width: int, bounds: BannerBounds | None) -> float:
    if x is not None:
        return x
    if align == "center":
        return canvas_width / 2.0
    if bounds is not None:
        return bounds.x + TEXT_BANNER_INSET
    return TEXT_BANNER_INSET


def _vertical_middle(canvas_height: int, bounds: BannerBounds | None) -> float:
    if bounds is not None:
        return bounds.y + bounds.height / 2.0
    return canvas_height / 2.0


def category_position(
    spec: CategorySpec,
    canvas_width: int,
    canvas_height: int,
    bounds: BannerBounds | None,
) -> tuple[float, float]:
    x = _anchor_x(spec.x, spec.align, canvas_width, bounds)
    if spec.y is not None:
        y = spec.y
    elif spec.offset_y is not None:
        top = bounds.y if bounds is not None else 0.0
        y = top + spec.offset_y
    else:
        y = _vertical_middle(canvas_height, bounds)
    return x, y


def draw_category(
    surface: Surface,
    spec: CategorySpec,
    text: str | None,
    *,
    color: str | None = None,
    bounds: BannerBounds | None = None,
    font_path: Path | None = None,
) -> float | None:
    """Draw the category label (and badge); return the y it was drawn at."""
    if not text:
        return None
    label = text.upper() if spec.uppercase else text
    fill = parse_color(color or spec.color)
    font, oblique = load_spec_font(spec.font, font_path)
    x, y = category_position(spec, surface.width, surface.height, bounds)

    if spec.badge is not None:
        badge = spec.badge
        text_width = surface.measure_text(label, font, letter_spacing=spec.letter_spacing)
        badge_width = text_width + badge.padding_x * 2
        badge_height = BADGE_BASE_HEIGHT + badge.padding_y
        if spec.align == "center":
            badge_x = x - badge_width / 2.0
        elif spec.align == "right":
            badge_x = x - text_width - badge.padding_x
        else:
            badge_x = x - badge.padding_x
        badge_y = y - badge_height / 2.0
        surface.fill_rect(
            (badge_x, badge_y, badge_x + badge_width, badge_y + badge_height),
            parse_color(badge.color),
            radius=badge.radius,
        )

    surface.draw_text(
        label,
        x,
        y,
        font=font,
        color=fill,
        align=spec.align,
        letter_spacing=spec.letter_spacing,
        oblique=oblique,
    )
    return y


def title_wrap_width(spec: TitleSpec, canvas_width: int, bounds: BannerBounds | None) -> float:
    if spec.max_width is not None:
        if spec.max_width >= 0:
            return spec.max_width
        if bounds is not None:
            return bounds.width + spec.max_width
    return canvas_width - TITLE_DEFAULT_MARGIN


def title_max_height(canvas_height: int, bounds: BannerBounds | None) -> float:
    if bounds is not None:
        return bounds.height * TITLE_BANNER_HEIGHT_RATIO
    return canvas_height * TITLE_CANVAS_HEIGHT_RATIO


def layout_title(
    spec: TitleSpec,
    text: str,
    *,
    canvas_width: int,
    canvas_height: int,
    bounds: BannerBounds | None = None,
    font_path: Path | None = None,
) -> TitleLayout:
    def measure(value: str, size: int) -> float:
        font, _ = load_spec_font(spec.font.with_size(size), font_path)
        return float(font.getlength(value))

    return fit_title(
        text,
        font_size=spec.font.size,
        line_height=spec.line_height,
        max_width=title_wrap_width(spec, canvas_width, bounds),
        max_height=title_max_height(canvas_height, bounds),
        measure=measure,
    )


def title_origin(
    spec: TitleSpec,
    canvas_width: int,
    canvas_height: int,
    bounds: BannerBounds | None,
    category_y: float | None,
) -> tuple[float, float]:
    x = _anchor_x(spec.x, spec.align, canvas_width, bounds)
    if spec.y is not None:
        y = spec.y
    elif category_y is not None and spec.offset_y:
        y = category_y + spec.offset_y
    else:
        y = _vertical_middle(canvas_height, bounds)
    return x, y


def draw_title(
    surface: Surface,
    spec: TitleSpec,
    text: str,
    *,
    color: str | None = None,
    bounds: BannerBounds | None = None,
    category_y: float | None = None,
    font_path: Path | None = None,
) -> TitleLayout:
    layout = layout_title(
        spec,
        text,
        canvas_width=surface.width,
        canvas_height=surface.height,
        bounds=bounds,
        font_path=font_path,
    )
    font, oblique = load_spec_font(spec.font.with_size(layout.font_size), font_path)
    fill = parse_color(color or spec.color)
    x, y = title_origin(spec, surface.width, surface.height, bounds, category_y)
    for index, line in enumerate(layout.lines):
        surface.draw_text(
            line,
            x,
            y + index * layout.line_height,
            font=font,
            color=fill,
            align=spec.align,
            oblique=oblique,
        )
    return layout


def draw_subtitle(surface: Surface, spec: SubtitleSpec | None, *, font_path: Path | None = None) -> None:
    if spec is None or not spec.text:
        return
    font, oblique = load_spec_font(spec.font, font_path)
    surface.draw_text(
        spec.text,
        spec.x,
        spec.y,
        font=font,
        color=parse_color(spec.color),
        align=spec.align,
        oblique=oblique,
    )
