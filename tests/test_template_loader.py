import copy
from pathlib import Path

import pytest

from coverstamp.errors import TemplateError
from coverstamp.models import CenteredBanner, GradientBackground, ImageBackground, PanelBanner
from coverstamp.template_loader import list_templates, load_catalog, normalize_template_dict, resolve_template

MINIMAL = {
    "id": "plain",
    "name": "Plain",
    "preview": {"bg_gradient": ["#ffffff", "#eeeeee"], "accent_color": "#333333"},
    "canvas": {"width": 800, "height": 400},
    "background": {"type": "solid", "color": "#ffffff"},
    "category": {"font": {"family": ["Arial"], "size": 20}, "color": "#333333"},
    "title": {"font": {"family": "Georgia, serif", "size": 48}, "color": "#111111"},
}


def test_unknown_or_missing_template_falls_back_to_classic() -> None:
    assert resolve_template("doesNotExist").id == "classic"
    assert resolve_template(None).id == "classic"
    assert resolve_template("").id == "classic"
    assert resolve_template("editorial").id == "editorial"


def test_list_templates_order_and_payload() -> None:
    infos = list_templates()
    assert [info.id for info in infos] == [
        "classic",
        "modernDark",
        "minimal",
        "vibrant",
        "editorial",
        "prayerCover",
    ]
    payload = infos[0].to_dict()
    assert payload == {
        "id": "classic",
        "name": "Classic",
        "description": "Clean centered banner with elegant serif typography",
        "preview": {"bgGradient": ["#e8e4df", "#d4cfc9"], "accentColor": "#c67c4e"},
    }


def test_bundled_templates_are_well_formed() -> None:
    catalog = load_catalog()
    for template in catalog.values():
        assert (template.canvas.width, template.canvas.height) == (1200, 630)
        assert template.title.font.size > 0
    classic = catalog["classic"]
    assert isinstance(classic.background, GradientBackground)
    assert isinstance(classic.banner, CenteredBanner)
    assert classic.category.uppercase
    assert isinstance(catalog["modernDark"].banner, PanelBanner)
    assert catalog["editorial"].title.font.italic
    assert catalog["editorial"].subtitle is not None
    prayer = catalog["prayerCover"].background
    assert isinstance(prayer, ImageBackground)
    assert prayer.path.is_file()


def test_normalize_minimal_template(tmp_path: Path) -> None:
    template = normalize_template_dict(copy.deepcopy(MINIMAL), tmp_path)
    assert template.banner is None
    assert template.decorations == ()
    assert template.title.font.family == ("Georgia", "serif")
    assert template.title.line_height == 60
    assert template.category.align == "center"


def test_normalize_resolves_relative_image_path(tmp_path: Path) -> None:
    data = copy.deepcopy(MINIMAL)
    data["background"] = {"type": "image", "path": "assets/bg.png"}
    template = normalize_template_dict(data, tmp_path)
    assert template.background == ImageBackground(path=tmp_path / "assets" / "bg.png")


@pytest.mark.parametrize(
    ("mutate", "message"),
    [
        (lambda d: d.pop("title"), "'title' must be a mapping"),
        (lambda d: d["background"].update(type="pattern"), "unknown background type"),
        (lambda d: d["category"].update(color="nope"), "not a valid color"),
        (lambda d: d["title"].update(align="justify"), "unsupported align"),
        (lambda d: d.update(banner={"type": "centered", "height": 100, "opacity": 3}), "within"),
        (lambda d: d.update(decorations=[{"type": "star"}]), "unknown decoration type"),
        (lambda d: d.pop("id"), "missing an 'id'"),
    ],
)
def test_normalize_rejects_malformed_entries(tmp_path: Path, mutate, message: str) -> None:
    data = copy.deepcopy(MINIMAL)
    mutate(data)
    with pytest.raises(TemplateError, match=message):
        normalize_template_dict(data, tmp_path)
