from __future__ import annotations

from coverstamp.constants import DEFAULT_BANNER_COLOR, DEFAULT_BANNER_OPACITY
from coverstamp.models import Banner, BannerBounds, CenteredBanner, PanelBanner
from coverstamp.render.colors import hex_to_rgb, parse_color, with_opacity
from coverstamp.render.surface import Surface


def _effective_opacity(override: float | None, default: float | None) -> float:
    if override is not None:
        value = override
    elif default is not None:
        value = default
    else:
        value = DEFAULT_BANNER_OPACITY
    return max(0.0, min(1.0, float(value)))


def centered_banner_bounds(banner: CenteredBanner, canvas_width: int, canvas_height: int) -> BannerBounds:
    y = (canvas_height - banner.height) / 2.0
    return BannerBounds(
        x=banner.padding,
        y=y,
        width=canvas_width - banner.padding * 2,
        height=banner.height,
        center_x=canvas_width / 2.0,
    )


def panel_banner_bounds(banner: PanelBanner) -> BannerBounds:
    return BannerBounds(
        x=banner.x,
        y=banner.y,
        width=banner.width,
        height=banner.height,
        center_x=banner.x + banner.width / 2.0,
    )


def draw_banner(
    surface: Surface,
    banner: Banner | None,
    *,
    color: str | None = None,
    opacity: float | None = None,
) -> BannerBounds | None:
    """Paint the banner panel and return its bounds, or None without a banner."""
    if banner is None:
        return None

    rgb = hex_to_rgb(color or banner.color or DEFAULT_BANNER_COLOR)
    fill = with_opacity(rgb, _effective_opacity(opacity, banner.opacity))

    if isinstance(banner, CenteredBanner):
        bounds = centered_banner_bounds(banner, surface.width, surface.height)
        box = (bounds.x, bounds.y, bounds.x + bounds.width, bounds.y + bounds.height)
        surface.fill_rect(box, fill)
        return bounds

    bounds = panel_banner_bounds(banner)
    box = (bounds.x, bounds.y, bounds.x + bounds.width, bounds.y + bounds.height)
    if banner.shadow is not None:
        surface.drop_shadow(
            box,
            parse_color(banner.shadow.color, fallback=(0, 0, 0, 64)),
            blur=banner.shadow.blur,
            offset_y=banner.shadow.offset_y,
            radius=banner.radius,
        )
    surface.fill_rect(box, fill, radius=banner.radius)
    if banner.border is not None:
        surface.stroke_rect(
            box,
            parse_color(banner.border.color),
            width=banner.border.width,
            radius=banner.radius,
        )
    return bounds
