import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from coverstamp.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr("coverstamp.config.platform.system", lambda: "Linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))


def test_templates_command_prints_json() -> None:
    result = runner.invoke(app, ["templates"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload[0]["id"] == "classic"
    assert set(payload[0]["preview"]) == {"bgGradient", "accentColor"}


def test_render_command_writes_file(tmp_path: Path) -> None:
    out = tmp_path / "out"
    result = runner.invoke(app, ["render", "Hello World", "--out", str(out), "--format", "png"])
    assert result.exit_code == 0, result.output
    written = Path(result.output.strip().splitlines()[-1])
    assert written.parent == out
    assert written.suffix == ".png"
    assert written.exists()


def test_render_command_with_local_background(tmp_path: Path, red_png: bytes) -> None:
    background = tmp_path / "bg.png"
    background.write_bytes(red_png)
    result = runner.invoke(
        app,
        ["render", "Hello", "--bg-file", str(background), "--template", "minimal", "--out", str(tmp_path / "out")],
    )
    assert result.exit_code == 0, result.output


def test_render_command_reports_errors(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["render", "Hello", "--bg-url", "ftp://example.test/a.png", "--out", str(tmp_path / "out")],
    )
    assert result.exit_code == 1
    assert not (tmp_path / "out").exists()


def test_init_config_writes_default_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["init-config"])
    assert result.exit_code == 0
    assert (tmp_path / "config" / "CoverStamp" / "config.yaml").exists()
