"""TeX math typeset to MathML.

Inline ``$...$`` and ``$$...$$`` spans are matched as inline patterns;
display blocks (``$$`` on their own lines and ``math`` fences) are handled by
the fence preprocessor through :func:`render_math`.
"""

from __future__ import annotations

import html
import logging
import typing as typ

from latex2mathml.converter import convert
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor

if typ.TYPE_CHECKING:
    import re
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any

logger = logging.getLogger(__name__)

DISPLAY_MATH_PATTERN = r"\$\$(?=\S)(.+?)(?<=\S)\$\$"
INLINE_MATH_PATTERN = r"(?<![\\\w$])\$(?=[^\s$])(.+?)(?<=[^\s\\$])\$(?![\w$])"


def render_math(tex: str, *, display: bool) -> str:
    """Return MathML for ``tex``; invalid input degrades to escaped code.

    Parameters
    ----------
    tex : str
        TeX source without delimiters.
    display : bool
        Render as a display block instead of inline.

    Returns
    -------
    str
        A ``<math>`` element (wrapped in ``div.math-display`` for display
        mode) or ``<code class="math-error">`` holding the escaped source.
    """
    source = tex.strip()
    try:
        mathml = convert(source, display="block" if display else "inline")
    except Exception:  # noqa: BLE001 - latex2mathml raises many exception types
        logger.debug("Could not typeset TeX %r", source, exc_info=True)
        return f'<code class="math-error">{html.escape(source)}</code>'
    if display:
        return f'<div class="math math-display">{mathml}</div>'
    return mathml


class MathInlineProcessor(InlineProcessor):
    """Replace a ``$...$`` span with stashed MathML."""

    def __init__(self, pattern: str, md: Markdown, *, display: bool) -> None:
        super().__init__(pattern, md)
        self.display = display

    def handleMatch(  # type: ignore[override]  # noqa: N802
        self, m: re.Match[str], data: str
    ) -> tuple[str, int, int]:
        """Stash the rendered math and return its placeholder."""
        rendered = render_math(m.group(1), display=self.display)
        return self.md.htmlStash.store(rendered), m.start(0), m.end(0)


class MathExtension(Extension):
    """Register inline math patterns and make ``\\$`` an escape."""

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Add the math inline patterns ahead of backslash escapes."""
        if "$" not in md.ESCAPED_CHARS:
            md.ESCAPED_CHARS.append("$")
        md.inlinePatterns.register(
            MathInlineProcessor(DISPLAY_MATH_PATTERN, md, display=True),
            "pubmarkup_display_math",
            186,
        )
        md.inlinePatterns.register(
            MathInlineProcessor(INLINE_MATH_PATTERN, md, display=False),
            "pubmarkup_inline_math",
            185,
        )


__all__ = ["MathExtension", "MathInlineProcessor", "render_math"]
