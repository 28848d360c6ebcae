from __future__ import annotations

import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from coverstamp.constants import ALIGN_OPTIONS, DEFAULT_DECORATION_COLOR, DEFAULT_TEMPLATE_ID
from coverstamp.errors import TemplateError
from coverstamp.models import (
    Background,
    Badge,
    Banner,
    BannerBorder,
    BannerShadow,
    Canvas,
    CategorySpec,
    CenteredBanner,
    CircleDecoration,
    Decoration,
    FontSpec,
    GradientBackground,
    GradientStop,
    ImageBackground,
    LineDecoration,
    PanelBanner,
    RectDecoration,
    SolidBackground,
    SubtitleSpec,
    Template,
    TemplateInfo,
    TemplatePreview,
    TitleSpec,
)
from coverstamp.render.colors import is_valid_color

LOGGER = logging.getLogger(__name__)

_TEMPLATE_PACKAGE = "coverstamp.templates"
_TEMPLATE_SUFFIXES = (".yaml", ".yml")


def _section(data: Mapping[str, Any], key: str, where: str) -> dict[str, Any]:
    value = data.get(key)
    if not isinstance(value, dict):
        raise TemplateError(f"{where}: '{key}' must be a mapping")
    return value


def _number(data: Mapping[str, Any], key: str, where: str, default: float | None = None) -> float:
    value = data.get(key, default)
    if value is None:
        raise TemplateError(f"{where}: '{key}' is required")
    if isinstance(value, bool):
        raise TemplateError(f"{where}: '{key}' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise TemplateError(f"{where}: '{key}' must be a number, got {value!r}") from exc


def _optional_number(data: Mapping[str, Any], key: str, where: str) -> float | None:
    if data.get(key) is None:
        return None
    return _number(data, key, where)


def _color(data: Mapping[str, Any], key: str, where: str, default: str | None = None) -> str:
    value = str(data.get(key) or default or "").strip()
    if not is_valid_color(value):
        raise TemplateError(f"{where}: '{key}' is not a valid color: {value!r}")
    return value


def _opacity(data: Mapping[str, Any], key: str, where: str) -> float | None:
    value = _optional_number(data, key, where)
    if value is not None and not 0.0 <= value <= 1.0:
        raise TemplateError(f"{where}: '{key}' must be within [0, 1], got {value}")
    return value


def _align(data: Mapping[str, Any], where: str, default: str) -> str:
    align = str(data.get("align") or default).lower()
    if align not in ALIGN_OPTIONS:
        raise TemplateError(f"{where}: unsupported align {align!r}")
    return align


def _font(data: Mapping[str, Any], where: str) -> FontSpec:
    font = _section(data, "font", where)
    family = font.get("family") or ["sans-serif"]
    if isinstance(family, str):
        family = [part.strip() for part in family.split(",")]
    size = int(_number(font, "size", f"{where}.font"))
    if size <= 0:
        raise TemplateError(f"{where}.font: size must be positive")
    style = str(font.get("style") or "normal").lower()
    if style not in {"normal", "italic"}:
        raise TemplateError(f"{where}.font: unsupported style {style!r}")
    return FontSpec(
        family=tuple(str(name) for name in family if str(name).strip()),
        size=size,
        weight=int(_number(font, "weight", f"{where}.font", default=400)),
        style=style,
    )


def _background(data: Mapping[str, Any], base_dir: Path, where: str) -> Background:
    background = _section(data, "background", where)
    where = f"{where}.background"
    kind = str(background.get("type") or "").lower()
    if kind == "solid":
        return SolidBackground(color=_color(background, "color", where))
    if kind == "gradient":
        raw_stops = background.get("stops")
        if not isinstance(raw_stops, list) or not raw_stops:
            raise TemplateError(f"{where}: gradient needs at least one stop")
        stops: list[GradientStop] = []
        previous = 0.0
        for index, raw in enumerate(raw_stops):
            stop_where = f"{where}.stops[{index}]"
            if not isinstance(raw, dict):
                raise TemplateError(f"{stop_where}: must be a mapping")
            offset = _number(raw, "offset", stop_where)
            if not previous <= offset <= 1.0:
                raise TemplateError(f"{stop_where}: offsets must be increasing within [0, 1]")
            previous = offset
            stops.append(GradientStop(offset=offset, color=_color(raw, "color", stop_where)))
        return GradientBackground(angle=_number(background, "angle", where, default=0), stops=tuple(stops))
    if kind == "image":
        raw_path = str(background.get("path") or "").strip()
        if not raw_path:
            raise TemplateError(f"{where}: image background needs a path")
        path = Path(raw_path)
        return ImageBackground(path=path if path.is_absolute() else (base_dir / path))
    raise TemplateError(f"{where}: unknown background type {kind!r}")


def _decoration(raw: Any, where: str) -> Decoration:
    if not isinstance(raw, dict):
        raise TemplateError(f"{where}: must be a mapping")
    kind = str(raw.get("type") or "").lower()
    color = _color(raw, "color", where, default=DEFAULT_DECORATION_COLOR)
    if kind == "circle":
        return CircleDecoration(
            x=_number(raw, "x", where),
            y=_number(raw, "y", where),
            radius=_number(raw, "radius", where),
            color=color,
        )
    if kind == "rect":
        return RectDecoration(
            x=_number(raw, "x", where),
            y=_number(raw, "y", where),
            width=_number(raw, "width", where),
            height=_number(raw, "height", where),
            color=color,
            radius=_number(raw, "radius", where, default=0),
        )
    if kind == "line":
        return LineDecoration(
            x1=_number(raw, "x1", where),
            y1=_number(raw, "y1", where),
            x2=_number(raw, "x2", where),
            y2=_number(raw, "y2", where),
            color=color,
            stroke_width=_number(raw, "stroke_width", where, default=1),
        )
    raise TemplateError(f"{where}: unknown decoration type {kind!r}")


def _banner(data: Mapping[str, Any], where: str) -> Banner | None:
    if data.get("banner") is None:
        return None
    banner = _section(data, "banner", where)
    where = f"{where}.banner"
    kind = str(banner.get("type") or "").lower()
    color = _color(banner, "color", where, default="#ffffff")
    opacity = _opacity(banner, "opacity", where)
    if kind == "centered":
        return CenteredBanner(
            height=int(_number(banner, "height", where)),
            padding=int(_number(banner, "padding", where, default=0)),
            color=color,
            opacity=opacity,
        )
    if kind in {"left", "floating"}:
        border = None
        if banner.get("border") is not None:
            raw_border = _section(banner, "border", where)
            border = BannerBorder(
                width=int(_number(raw_border, "width", f"{where}.border", default=1)),
                color=_color(raw_border, "color", f"{where}.border"),
            )
        shadow = None
        if banner.get("shadow") is not None:
            raw_shadow = _section(banner, "shadow", where)
            shadow = BannerShadow(
                blur=_number(raw_shadow, "blur", f"{where}.shadow", default=0),
                color=_color(raw_shadow, "color", f"{where}.shadow"),
                offset_y=_number(raw_shadow, "offset_y", f"{where}.shadow", default=0),
            )
        return PanelBanner(
            kind=kind,
            x=int(_number(banner, "x", where)),
            y=int(_number(banner, "y", where)),
            width=int(_number(banner, "width", where)),
            height=int(_number(banner, "height", where)),
            color=color,
            opacity=opacity,
            radius=int(_number(banner, "radius", where, default=0)),
            border=border,
            shadow=shadow,
        )
    raise TemplateError(f"{where}: unknown banner type {kind!r}")


def _category(data: Mapping[str, Any], where: str) -> CategorySpec:
    category = _section(data, "category", where)
    where = f"{where}.category"
    badge = None
    raw_badge = category.get("badge")
    if isinstance(raw_badge, dict) and raw_badge.get("enabled", True):
        padding = raw_badge.get("padding") or {}
        badge = Badge(
            padding_x=int(_number(padding, "x", f"{where}.badge.padding", default=0)),
            padding_y=int(_number(padding, "y", f"{where}.badge.padding", default=0)),
            color=_color(raw_badge, "color", f"{where}.badge"),
            radius=int(_number(raw_badge, "radius", f"{where}.badge", default=0)),
        )
    return CategorySpec(
        font=_font(category, where),
        color=_color(category, "color", where),
        uppercase=str(category.get("text_transform") or "").lower() == "uppercase",
        letter_spacing=_number(category, "letter_spacing", where, default=0),
        x=_optional_number(category, "x", where),
        y=_optional_number(category, "y", where),
        offset_y=_optional_number(category, "offset_y", where),
        align=_align(category, where, "center"),
        badge=badge,
    )


def _title(data: Mapping[str, Any], where: str) -> TitleSpec:
    title = _section(data, "title", where)
    where = f"{where}.title"
    font = _font(title, where)
    line_height = _number(title, "line_height", where, default=round(font.size * 1.25))
    if line_height <= 0:
        raise TemplateError(f"{where}: line_height must be positive")
    return TitleSpec(
        font=font,
        color=_color(title, "color", where),
        line_height=line_height,
        max_width=_optional_number(title, "max_width", where),
        x=_optional_number(title, "x", where),
        y=_optional_number(title, "y", where),
        offset_y=_optional_number(title, "offset_y", where),
        align=_align(title, where, "center"),
    )


def _subtitle(data: Mapping[str, Any], where: str) -> SubtitleSpec | None:
    raw = data.get("subtitle")
    if not isinstance(raw, dict) or not raw.get("enabled", False):
        return None
    where = f"{where}.subtitle"
    return SubtitleSpec(
        text=str(raw.get("text") or ""),
        font=_font(raw, where),
        color=_color(raw, "color", where),
        x=_number(raw, "x", where),
        y=_number(raw, "y", where),
        align=_align(raw, where, "left"),
    )


def _preview(data: Mapping[str, Any], where: str) -> TemplatePreview:
    preview = _section(data, "preview", where)
    gradient = preview.get("bg_gradient")
    if not isinstance(gradient, list) or len(gradient) != 2:
        raise TemplateError(f"{where}.preview: bg_gradient must list two colors")
    return TemplatePreview(
        bg_gradient=(str(gradient[0]), str(gradient[1])),
        accent_color=_color(preview, "accent_color", f"{where}.preview"),
    )


def normalize_template_dict(data: dict[str, Any], base_dir: Path) -> Template:
    """Validate one raw catalog entry and convert it into a :class:`Template`.

    Relative image paths are resolved against ``base_dir``.
    """
    template_id = str(data.get("id") or "").strip()
    if not template_id:
        raise TemplateError("template is missing an 'id'")
    where = f"template {template_id!r}"

    canvas_raw = _section(data, "canvas", where)
    canvas = Canvas(
        width=int(_number(canvas_raw, "width", f"{where}.canvas")),
        height=int(_number(canvas_raw, "height", f"{where}.canvas")),
    )
    if canvas.width <= 0 or canvas.height <= 0:
        raise TemplateError(f"{where}: canvas must have a positive size")

    raw_decorations = data.get("decorations") or []
    if not isinstance(raw_decorations, list):
        raise TemplateError(f"{where}: 'decorations' must be a list")

    return Template(
        id=template_id,
        name=str(data.get("name") or template_id),
        description=str(data.get("description") or ""),
        preview=_preview(data, where),
        canvas=canvas,
        background=_background(data, base_dir, where),
        decorations=tuple(
            _decoration(raw, f"{where}.decorations[{index}]") for index, raw in enumerate(raw_decorations)
        ),
        banner=_banner(data, where),
        category=_category(data, where),
        title=_title(data, where),
        subtitle=_subtitle(data, where),
        order=int(data.get("order") or 0),
    )


def _templates_dir() -> Path:
    return Path(str(resources.files(_TEMPLATE_PACKAGE)))


def _load_file(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise TemplateError(f"template file is not a mapping: {path}")
    return data


@lru_cache(maxsize=1)
def load_catalog() -> Mapping[str, Template]:
    """Parse and validate every bundled template once."""
    base_dir = _templates_dir()
    templates: dict[str, Template] = {}
    for path in sorted(base_dir.iterdir()):
        if not path.name.endswith(_TEMPLATE_SUFFIXES):
            continue
        template = normalize_template_dict(_load_file(path), base_dir)
        if template.id in templates:
            raise TemplateError(f"duplicate template id {template.id!r} in {path.name}")
        templates[template.id] = template
    if DEFAULT_TEMPLATE_ID not in templates:
        raise TemplateError(f"default template {DEFAULT_TEMPLATE_ID!r} is missing from the catalog")
    ordered = sorted(templates.values(), key=lambda item: (item.order, item.id))
    LOGGER.debug("loaded %d templates", len(ordered))
    return MappingProxyType({template.id: template for template in ordered})


def resolve_template(template_id: str | None) -> Template:
    """Return the template for ``template_id``, or the default one when unknown."""
    catalog = load_catalog()
    template = catalog.get(template_id or "")
    if template is None:
        LOGGER.debug("unknown template %r, using %r", template_id, DEFAULT_TEMPLATE_ID)
        return catalog[DEFAULT_TEMPLATE_ID]
    return template


def list_templates() -> list[TemplateInfo]:
    return [
        TemplateInfo(id=t.id, name=t.name, description=t.description, preview=t.preview)
        for t in load_catalog().values()
    ]
