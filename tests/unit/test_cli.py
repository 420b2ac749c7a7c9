"""Unit tests for the command line interface."""

import pytest
from ocr_image_search import cli
from ocr_image_search.config import Settings
from ocr_image_search.context import AppContext


@pytest.fixture
def configured(tmp_path, monkeypatch, recognizer):
    """Point the CLI at a temporary store and the fake recognizer."""
    settings = Settings(database_path=str(tmp_path / "cli.sqlite"), log_format="console")
    build = AppContext.from_settings
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(
        AppContext, "from_settings", lambda s: build(s, recognizer=recognizer)
    )
    return settings


def test_scan_then_search(configured, image_tree, capsys):
    """Scanning reports counts and a later search lists the match."""
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["scan", str(image_tree)])
    assert excinfo.value.code == 0
    assert "Processed 2 images (2 new)" in capsys.readouterr().out

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["search", "wrold"])
    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "fuzzy tier" in out
    assert "cat.png" in out


def test_scan_missing_folder(configured, tmp_path, capsys):
    """A missing folder exits with an error."""
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["scan", str(tmp_path / "nope")])

    assert excinfo.value.code == 1
    assert "Cannot scan" in capsys.readouterr().err


def test_command_required():
    """Running without a command is a usage error."""
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])

    assert excinfo.value.code == 2
