"""Load markup settings YAML into typed dataclasses."""

from __future__ import annotations

import os
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .._constants import CONFIG_ENV_VAR
from .helpers import _positive_float, _required_str, _string_tuple
from .models import MarkupSettings, SettingsError


def load_settings(path: Path | None = None) -> MarkupSettings:
    """Load the YAML configuration describing rendering choices.

    Parameters
    ----------
    path : Path, optional
        Filesystem path to the YAML file. When omitted, the path named by the
        ``PUBMARKUP_CONFIG`` environment variable is used; without either,
        the defaults of :class:`MarkupSettings` apply.

    Returns
    -------
    MarkupSettings
        Settings parsed from the ``markup`` mapping of the file.

    Raises
    ------
    FileNotFoundError
        If an explicit or environment-provided path does not exist.
    TypeError
        If the top-level YAML structure is not a mapping.
    SettingsError
        If the ``markup`` section or one of its values is invalid.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pubmarkup.config import load_settings
    >>> load_settings().toc_marker  # doctest: +SKIP
    '[TOC]'
    """
    if path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        if not env_path:
            return MarkupSettings()
        path = Path(env_path)
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    section = loaded.get("markup") or {}
    if not isinstance(section, dict):
        msg = "The 'markup' section must be a mapping."
        raise SettingsError(msg)
    return _build_settings(section)


def _build_settings(payload: typ.Mapping[str, typ.Any]) -> MarkupSettings:
    """Build MarkupSettings from a mapping, applying dataclass defaults."""
    base = MarkupSettings()
    languages = _string_tuple(
        "diagram_languages", payload.get("diagram_languages"), base.diagram_languages
    )
    return MarkupSettings(
        light_theme=_required_str(
            "light_theme", payload.get("light_theme"), base.light_theme
        ),
        dark_theme=_required_str(
            "dark_theme", payload.get("dark_theme"), base.dark_theme
        ),
        highlighter_timeout=_positive_float(
            "highlighter_timeout",
            payload.get("highlighter_timeout"),
            base.highlighter_timeout,
        ),
        toc_marker=_required_str(
            "toc_marker", payload.get("toc_marker"), base.toc_marker
        ),
        slug_separator=_required_str(
            "slug_separator", payload.get("slug_separator"), base.slug_separator
        ),
        permalink_symbol=_required_str(
            "permalink_symbol", payload.get("permalink_symbol"), base.permalink_symbol
        ),
        permalink_title=_required_str(
            "permalink_title", payload.get("permalink_title"), base.permalink_title
        ),
        diagram_languages=languages,
        diagram_engine=_required_str(
            "diagram_engine", payload.get("diagram_engine"), base.diagram_engine
        ),
    )


__all__ = ["load_settings"]
