from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any

import httpx

from coverstamp.config import DEFAULT_CONFIG
from coverstamp.constants import (
    DEFAULT_CATEGORY_TEXT,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_QUALITY,
    DEFAULT_TEMPLATE_ID,
    OUTPUT_PREFIX,
)
from coverstamp.encoder import encode_image, resolve_output_format, save_output
from coverstamp.errors import ValidationError
from coverstamp.fetch import load_request_background
from coverstamp.models import RenderRequest, RenderResult
from coverstamp.naming import build_output_name
from coverstamp.render.background import draw_background
from coverstamp.render.banner import draw_banner
from coverstamp.render.decorations import draw_decorations
from coverstamp.render.surface import Surface
from coverstamp.render.text import draw_category, draw_subtitle, draw_title
from coverstamp.template_loader import resolve_template

LOGGER = logging.getLogger(__name__)


def _font_override(config: dict[str, Any]) -> Path | None:
    value = config.get("font_path")
    if not value:
        return None
    return Path(str(value)).expanduser()


def generate_image(
    request: RenderRequest,
    *,
    config: dict[str, Any] | None = None,
    output_dir: Path | None = None,
    client: httpx.Client | None = None,
    cancel_event: threading.Event | None = None,
) -> RenderResult:
    """Render one featured image for ``request`` and write it to disk.

    The caller-supplied background is resolved before anything is drawn, so a
    failed fetch raises without producing a file.
    """
    cfg = config if config is not None else DEFAULT_CONFIG
    title_text = (request.main_text or "").strip()
    if not title_text:
        raise ValidationError("mainText is required")

    t0 = time.perf_counter()
    template = resolve_template(request.template_id or cfg.get("default_template") or DEFAULT_TEMPLATE_ID)
    category_text = request.category_text
    if category_text is None:
        category_text = str(cfg.get("default_category", DEFAULT_CATEGORY_TEXT) or "")
    ext, _ = resolve_output_format(str(cfg.get("output_format") or DEFAULT_OUTPUT_FORMAT))
    bg_image = load_request_background(
        url=request.bg_image_url,
        inline=request.bg_image_base64,
        config=cfg,
        client=client,
        cancel_event=cancel_event,
    )
    font_path = _font_override(cfg)

    surface = Surface(template.canvas.width, template.canvas.height)
    draw_background(surface, template.background, bg_image=bg_image)
    draw_decorations(surface, template.decorations)
    bounds = draw_banner(
        surface,
        template.banner,
        color=request.banner_color,
        opacity=request.banner_opacity,
    )
    category_y = draw_category(
        surface,
        template.category,
        category_text,
        color=request.category_color,
        bounds=bounds,
        font_path=font_path,
    )
    layout = draw_title(
        surface,
        template.title,
        title_text,
        color=request.title_color,
        bounds=bounds,
        category_y=category_y,
        font_path=font_path,
    )
    draw_subtitle(surface, template.subtitle, font_path=font_path)

    data = encode_image(
        surface.to_image(),
        fmt=ext,
        quality=int(cfg.get("quality", DEFAULT_QUALITY)),
    )
    filename = build_output_name(OUTPUT_PREFIX, ext)
    directory = output_dir or Path(str(cfg.get("output_dir") or DEFAULT_CONFIG["output_dir"]))
    path = save_output(directory, filename, data)
    LOGGER.info(
        "rendered %s with template %s (title %dpx, %d lines) in %.2fs",
        filename,
        template.id,
        layout.font_size,
        len(layout.lines),
        time.perf_counter() - t0,
    )
    return RenderResult(
        filename=filename,
        data=data,
        path=path,
        size=surface.size,
        template_id=template.id,
        title=layout,
    )
