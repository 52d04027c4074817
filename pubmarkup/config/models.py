"""Typed dataclasses describing pubmarkup rendering settings."""

from __future__ import annotations

import dataclasses as dc

from .._constants import SLUG_SEPARATOR


class SettingsError(ValueError):
    """Raised when the markup configuration is invalid or incomplete."""


@dc.dataclass(frozen=True, slots=True)
class MarkupSettings:
    """Process-wide knobs for the rendering pipeline.

    Attributes
    ----------
    light_theme : str
        Pygments style used for the light colour scheme.
    dark_theme : str
        Pygments style emitted through the ``--hl-dark*`` CSS variables.
    highlighter_timeout : float
        Seconds a render waits for the highlighter to finish loading.
    toc_marker : str
        Paragraph text replaced by the rendered table of contents.
    slug_separator : str
        Separator between the document id and a heading slug.
    permalink_symbol : str
        Visible text of the permalink appended to headings.
    permalink_title : str
        Tooltip of the permalink symbol.
    diagram_languages : tuple[str, ...]
        Fence languages rendered as Graphviz diagrams.
    diagram_engine : str
        Graphviz layout engine.
    """

    light_theme: str = "default"
    dark_theme: str = "monokai"
    highlighter_timeout: float = 30.0
    toc_marker: str = "[TOC]"
    slug_separator: str = SLUG_SEPARATOR
    permalink_symbol: str = "#"
    permalink_title: str = "Link to this section"
    diagram_languages: tuple[str, ...] = ("dot", "graphviz")
    diagram_engine: str = "dot"


__all__ = ["MarkupSettings", "SettingsError"]
