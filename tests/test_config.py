"""Tests for loading markup settings from YAML."""

from __future__ import annotations

import typing as typ

import pytest

from pubmarkup.config import MarkupSettings, SettingsError, load_settings

if typ.TYPE_CHECKING:
    from pathlib import Path


def _write(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "markup.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults_without_file(monkeypatch: pytest.MonkeyPatch) -> None:
    """Without an explicit path or environment variable the defaults apply."""
    monkeypatch.delenv("PUBMARKUP_CONFIG", raising=False)

    assert load_settings() == MarkupSettings()


def test_load_settings_reads_markup_section(tmp_path: Path) -> None:
    """Values in the ``markup`` mapping override the defaults."""
    path = _write(
        tmp_path,
        """
markup:
  dark_theme: dracula
  highlighter_timeout: 5
  toc_marker: "[[toc]]"
  diagram_languages: [DOT, neato, dot]
""",
    )

    settings = load_settings(path)

    assert settings.dark_theme == "dracula"
    assert settings.light_theme == "default"
    assert settings.highlighter_timeout == pytest.approx(5.0)
    assert settings.toc_marker == "[[toc]]"
    assert settings.diagram_languages == ("dot", "neato")


def test_load_settings_uses_environment_path(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """``PUBMARKUP_CONFIG`` supplies the path when none is passed."""
    path = _write(tmp_path, "markup:\n  light_theme: friendly\n")
    monkeypatch.setenv("PUBMARKUP_CONFIG", str(path))

    assert load_settings().light_theme == "friendly"


def test_load_settings_missing_file(tmp_path: Path) -> None:
    """An explicit path that does not exist is an error."""
    with pytest.raises(FileNotFoundError, match="not found"):
        load_settings(tmp_path / "missing.yaml")


def test_load_settings_rejects_non_mapping(tmp_path: Path) -> None:
    """The document root must be a mapping."""
    path = _write(tmp_path, "- one\n- two\n")

    with pytest.raises(TypeError, match="mapping"):
        load_settings(path)


@pytest.mark.parametrize(
    "body",
    [
        "markup: [1, 2]\n",
        "markup:\n  highlighter_timeout: -1\n",
        "markup:\n  highlighter_timeout: soon\n",
        "markup:\n  highlighter_timeout: true\n",
        "markup:\n  dark_theme: '  '\n",
        "markup:\n  diagram_languages: {dot: 1}\n",
    ],
)
def test_load_settings_rejects_invalid_values(tmp_path: Path, body: str) -> None:
    """Invalid sections and values raise :class:`SettingsError`."""
    path = _write(tmp_path, body)

    with pytest.raises(SettingsError):
        load_settings(path)
