import re
from pathlib import Path

import httpx
import pytest
from PIL import Image

import coverstamp.generator as generator
from coverstamp.config import DEFAULT_CONFIG
from coverstamp.errors import BackgroundFetchError, ValidationError
from coverstamp.generator import generate_image
from coverstamp.models import RenderRequest
from coverstamp.render.typography import load_spec_font, wrap_words
from coverstamp.template_loader import list_templates, resolve_template

PNG_CONFIG = {**DEFAULT_CONFIG, "output_format": "png"}
LONG_TITLE = (
    "Seven practical lessons we learned while migrating a decade old monolith "
    "to small services without stopping the weekly release train"
)


def test_generate_default_webp(tmp_path: Path) -> None:
    result = generate_image(RenderRequest(main_text="Hello World"), output_dir=tmp_path)
    assert re.fullmatch(r"featured-image-\d+\.webp", result.filename)
    assert result.path == tmp_path / result.filename
    assert result.path.read_bytes() == result.data
    with Image.open(result.path) as image:
        assert image.format == "WEBP"
        assert image.size == (1200, 630)
    assert result.template_id == "classic"
    assert result.title is not None
    assert result.title.font_size == 64


def test_unknown_template_renders_classic(tmp_path: Path) -> None:
    result = generate_image(RenderRequest(main_text="Hello", template_id="doesNotExist"), output_dir=tmp_path)
    assert result.template_id == "classic"
    assert result.path.exists()


@pytest.mark.parametrize("template_id", [info.id for info in list_templates()])
def test_every_template_renders(tmp_path: Path, template_id: str) -> None:
    result = generate_image(
        RenderRequest(main_text="Building calm software", template_id=template_id),
        output_dir=tmp_path,
    )
    assert result.template_id == template_id
    assert result.size == (1200, 630)


def test_blank_title_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        generate_image(RenderRequest(main_text="   "), output_dir=tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_failed_background_fetch_writes_nothing(tmp_path: Path) -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
    request = RenderRequest(main_text="Hello", bg_image_url="https://img.example.test/gone.png")
    with client, pytest.raises(BackgroundFetchError, match="404"):
        generate_image(request, output_dir=tmp_path, client=client)
    assert list(tmp_path.iterdir()) == []


def test_long_title_is_shrunk_to_fit(tmp_path: Path) -> None:
    title_font, _ = load_spec_font(resolve_template("classic").title.font)
    assert len(wrap_words(LONG_TITLE, 840, title_font.getlength)) >= 5

    result = generate_image(RenderRequest(main_text=LONG_TITLE), output_dir=tmp_path)
    assert result.title is not None
    assert 32 <= result.title.font_size < 64
    assert 1 <= len(result.title.lines) <= 4


def test_inline_background_and_banner_overrides(tmp_path: Path, red_png_base64: str) -> None:
    request = RenderRequest(
        main_text="Hello",
        bg_image_base64=red_png_base64,
        banner_color="#00ff00",
        banner_opacity=1,
    )
    result = generate_image(request, config=PNG_CONFIG, output_dir=tmp_path)
    assert result.filename.endswith(".png")
    with Image.open(result.path) as image:
        rgb = image.convert("RGB")
        assert rgb.getpixel((5, 5)) == (255, 0, 0)
        assert rgb.getpixel((110, 150)) == (0, 255, 0)


def test_filenames_are_unique(tmp_path: Path) -> None:
    names = {generate_image(RenderRequest(main_text="Same"), output_dir=tmp_path).filename for _ in range(3)}
    assert len(names) == 3
    assert len(list(tmp_path.iterdir())) == 3


def test_request_from_payload() -> None:
    request = RenderRequest.from_payload(
        {"mainText": "Hi", "templateId": "minimal", "bannerOpacity": "0.5", "categoryText": None}
    )
    assert request.template_id == "minimal"
    assert request.banner_opacity == 0.5
    assert request.category_text is None
    with pytest.raises(ValidationError):
        RenderRequest.from_payload({"mainText": "Hi", "bannerOpacity": "opaque"})

@pytest.fixture
def drawn_categories(monkeypatch) -> list[str | None]:
    seen: list[str | None] = []
    original = generator.draw_category

    def recording_draw_category(surface, spec, text, **kwargs):
        seen.append(text)
        return original(surface, spec, text, **kwargs)

    monkeypatch.setattr(generator, "draw_category", recording_draw_category)
    return seen


def test_config_supplies_default_template_and_category(tmp_path: Path, drawn_categories: list[str | None]) -> None:
    config = {**DEFAULT_CONFIG, "default_template": "minimal", "default_category": "Engineering"}

    result = generate_image(RenderRequest(main_text="Hello"), config=config, output_dir=tmp_path)
    assert result.template_id == "minimal"

    request = RenderRequest(main_text="Hello", template_id="vibrant", category_text="")
    assert generate_image(request, config=config, output_dir=tmp_path).template_id == "vibrant"
    assert drawn_categories == ["Engineering", ""]


def test_payload_without_category_uses_default_label(tmp_path: Path, drawn_categories: list[str | None]) -> None:
    result = generate_image(RenderRequest.from_payload({"mainText": "Hi"}), output_dir=tmp_path)
    assert result.template_id == "classic"
    assert drawn_categories == ["CATEGORY"]
