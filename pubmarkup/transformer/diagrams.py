"""Render diagram fences to inline SVG with Graphviz."""

from __future__ import annotations

import logging

import graphviz

from .._constants import SVG_PREAMBLE_PATTERN

logger = logging.getLogger(__name__)


class DiagramRenderer:
    """Turn Graphviz DOT source into an SVG fragment.

    Rendering shells out to the Graphviz binaries. When they are missing or
    reject the source, :meth:`render` returns ``None`` and the caller keeps
    the fence as a code block.
    """

    def __init__(self, engine: str = "dot") -> None:
        self.engine = engine

    def render(self, source: str) -> str | None:
        """Return the SVG markup for ``source`` or ``None`` on failure."""
        try:
            svg = graphviz.Source(source, engine=self.engine).pipe(
                format="svg", encoding="utf-8"
            )
        except graphviz.ExecutableNotFound:
            logger.warning("Graphviz executable not found; rendering diagram as code")
            return None
        except graphviz.CalledProcessError as exc:
            logger.warning("Graphviz rejected diagram source: %s", exc)
            return None
        return SVG_PREAMBLE_PATTERN.sub("", svg).strip()


__all__ = ["DiagramRenderer"]
