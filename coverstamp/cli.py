from __future__ import annotations

import base64
import json
import logging
from pathlib import Path

import typer

from coverstamp import __version__
from coverstamp.config import load_config, write_default_config
from coverstamp.errors import CoverStampError
from coverstamp.generator import generate_image
from coverstamp.models import RenderRequest
from coverstamp.template_loader import list_templates

app = typer.Typer(add_completion=False, no_args_is_help=True, help="CoverStamp featured image CLI.")
LOGGER = logging.getLogger("coverstamp")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def _root(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    pass


@app.command()
def templates() -> None:
    """List the bundled templates as JSON."""
    try:
        payload = [info.to_dict() for info in list_templates()]
    except CoverStampError as exc:
        typer.secho(f"Template catalog failed to load: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@app.command()
def render(
    text: str = typer.Argument(..., help="Main title text."),
    template: str | None = typer.Option(None, "--template", help="Template id (unknown ids fall back to classic)."),
    category: str | None = typer.Option(None, "--category", help="Category label text."),
    bg_url: str | None = typer.Option(None, "--bg-url", help="Remote background image URL."),
    bg_file: Path | None = typer.Option(
        None, "--bg-file", exists=True, dir_okay=False, resolve_path=True, help="Local background image."
    ),
    banner_color: str | None = typer.Option(None, "--banner-color", help="Banner color as #rrggbb."),
    banner_opacity: float | None = typer.Option(None, "--banner-opacity", help="Banner opacity, 0..1."),
    category_color: str | None = typer.Option(None, "--category-color"),
    title_color: str | None = typer.Option(None, "--title-color"),
    out: Path | None = typer.Option(None, "--out", help="Output directory."),
    output_format: str | None = typer.Option(None, "--format", help="Output format: webp|png|jpeg"),
    quality: int | None = typer.Option(None, "--quality", min=1, max=100),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Render a featured image and print the written path."""
    cfg = load_config()
    _setup_logging(log_level or str(cfg.get("log_level", "info")))

    if output_format:
        cfg["output_format"] = output_format
    if quality is not None:
        cfg["quality"] = quality

    inline: str | None = None
    if bg_file is not None:
        inline = base64.b64encode(bg_file.read_bytes()).decode("ascii")

    request = RenderRequest(
        main_text=text,
        template_id=template,
        category_text=category,
        bg_image_url=bg_url,
        bg_image_base64=inline,
        banner_color=banner_color,
        banner_opacity=banner_opacity,
        category_color=category_color,
        title_color=title_color,
    )
    try:
        result = generate_image(request, config=cfg, output_dir=out)
    except CoverStampError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    typer.echo(str(result.path))


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    path = write_default_config(force=force)
    typer.echo(f"Config initialized: {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
