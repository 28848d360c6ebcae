from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from coverstamp.errors import ValidationError


@dataclass(frozen=True, slots=True)
class Canvas:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class FontSpec:
    family: tuple[str, ...]
    size: int
    weight: int = 400
    style: str = "normal"

    @property
    def bold(self) -> bool:
        return self.weight >= 600

    @property
    def italic(self) -> bool:
        return self.style == "italic"

    def with_size(self, size: int) -> FontSpec:
        return replace(self, size=size)


@dataclass(frozen=True, slots=True)
class GradientStop:
    offset: float
    color: str


@dataclass(frozen=True, slots=True)
class SolidBackground:
    color: str


@dataclass(frozen=True, slots=True)
class GradientBackground:
    angle: float
    stops: tuple[GradientStop, ...]


@dataclass(frozen=True, slots=True)
class ImageBackground:
    path: Path


Background = SolidBackground | GradientBackground | ImageBackground


@dataclass(frozen=True, slots=True)
class CircleDecoration:
    x: float
    y: float
    radius: float
    color: str


@dataclass(frozen=True, slots=True)
class RectDecoration:
    x: float
    y: float
    width: float
    height: float
    color: str
    radius: float = 0


@dataclass(frozen=True, slots=True)
class LineDecoration:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    stroke_width: float = 1


Decoration = CircleDecoration | RectDecoration | LineDecoration


@dataclass(frozen=True, slots=True)
class BannerBorder:
    width: int
    color: str


@dataclass(frozen=True, slots=True)
class BannerShadow:
    blur: float
    color: str
    offset_y: float = 0


@dataclass(frozen=True, slots=True)
class CenteredBanner:
    height: int
    padding: int
    color: str
    opacity: float | None = None


@dataclass(frozen=True, slots=True)
class PanelBanner:
    """Explicitly placed panel; ``kind`` is ``left`` or ``floating``."""

    kind: str
    x: int
    y: int
    width: int
    height: int
    color: str
    opacity: float | None = None
    radius: int = 0
    border: BannerBorder | None = None
    shadow: BannerShadow | None = None


Banner = CenteredBanner | PanelBanner


@dataclass(frozen=True, slots=True)
class Badge:
    padding_x: int
    padding_y: int
    color: str
    radius: int = 0


@dataclass(frozen=True, slots=True)
class CategorySpec:
    font: FontSpec
    color: str
    uppercase: bool = False
    letter_spacing: float = 0
    x: float | None = None
    y: float | None = None
    offset_y: float | None = None
    align: str = "center"
    badge: Badge | None = None


@dataclass(frozen=True, slots=True)
class TitleSpec:
    font: FontSpec
    color: str
    line_height: float
    max_width: float | None = None
    x: float | None = None
    y: float | None = None
    offset_y: float | None = None
    align: str = "center"


@dataclass(frozen=True, slots=True)
class SubtitleSpec:
    text: str
    font: FontSpec
    color: str
    x: float
    y: float
    align: str = "left"


@dataclass(frozen=True, slots=True)
class TemplatePreview:
    bg_gradient: tuple[str, str]
    accent_color: str

    def to_dict(self) -> dict[str, Any]:
        return {"bgGradient": list(self.bg_gradient), "accentColor": self.accent_color}


@dataclass(frozen=True, slots=True)
class Template:
    id: str
    name: str
    description: str
    preview: TemplatePreview
    canvas: Canvas
    background: Background
    category: CategorySpec
    title: TitleSpec
    decorations: tuple[Decoration, ...] = ()
    banner: Banner | None = None
    subtitle: SubtitleSpec | None = None
    order: int = 0


@dataclass(frozen=True, slots=True)
class TemplateInfo:
    id: str
    name: str
    description: str
    preview: TemplatePreview

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "preview": self.preview.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class BannerBounds:
    x: float
    y: float
    width: float
    height: float
    center_x: float


@dataclass(frozen=True, slots=True)
class TitleLayout:
    font_size: int
    line_height: float
    lines: tuple[str, ...]


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True)
class RenderRequest:
    main_text: str
    template_id: str | None = None
    category_text: str | None = None
    bg_image_url: str | None = None
    bg_image_base64: str | None = None
    banner_color: str | None = None
    banner_opacity: float | None = None
    category_color: str | None = None
    title_color: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RenderRequest:
        """Build a request from the camelCase body used by the HTTP layer."""
        opacity_raw = payload.get("bannerOpacity")
        opacity: float | None = None
        if opacity_raw is not None and opacity_raw != "":
            try:
                opacity = float(opacity_raw)
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"bannerOpacity must be a number, got: {opacity_raw!r}") from exc
        category = payload.get("categoryText")
        return cls(
            main_text=str(payload.get("mainText") or ""),
            template_id=_optional_text(payload.get("templateId")),
            category_text=None if category is None else str(category),
            bg_image_url=_optional_text(payload.get("bgImageUrl")),
            bg_image_base64=_optional_text(payload.get("bgImageBase64")),
            banner_color=_optional_text(payload.get("bannerColor")),
            banner_opacity=opacity,
            category_color=_optional_text(payload.get("categoryColor")),
            title_color=_optional_text(payload.get("titleColor")),
        )


@dataclass(slots=True)
class RenderResult:
    filename: str
    data: bytes
    path: Path
    size: tuple[int, int]
    template_id: str
    title: TitleLayout | None = None
