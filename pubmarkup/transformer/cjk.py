"""Drop soft line breaks between wide CJK characters.

Browsers render a newline inside a paragraph as a space, which looks wrong
between Chinese or Japanese characters. A newline whose neighbours are both
East Asian wide or fullwidth characters is removed. Hangul is written with
spaces between words, so it keeps its line breaks, and code is never touched.
"""

from __future__ import annotations

import re
import typing as typ
import unicodedata

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any

SOFT_BREAK_PATTERN = re.compile(r"(?P<before>.)[ \t]*\n[ \t]*(?=(?P<after>.))")
VERBATIM_TAGS = frozenset({"pre", "code", "math", "svg", "script", "style"})
HANGUL_RANGES = (
    (0x1100, 0x11FF),
    (0x3130, 0x318F),
    (0xA960, 0xA97F),
    (0xAC00, 0xD7AF),
    (0xD7B0, 0xD7FF),
)


def is_hangul(char: str) -> bool:
    """Return ``True`` for Hangul jamo and syllables."""
    code = ord(char)
    return any(first <= code <= last for first, last in HANGUL_RANGES)


def is_wide_cjk(char: str) -> bool:
    """Return ``True`` for wide or fullwidth characters other than Hangul."""
    return unicodedata.east_asian_width(char) in {"W", "F"} and not is_hangul(char)


def join_cjk_lines(text: str) -> str:
    """Remove newlines sitting between two wide CJK characters.

    Examples
    --------
    >>> join_cjk_lines("日本\\n語")
    '日本語'
    >>> join_cjk_lines("한국\\n어")
    '한국\\n어'
    """
    if "\n" not in text:
        return text

    def _repl(match: re.Match[str]) -> str:
        if is_wide_cjk(match.group("before")) and is_wide_cjk(match.group("after")):
            return match.group("before")
        return match.group(0)

    return SOFT_BREAK_PATTERN.sub(_repl, text)


class CjkLineBreakTreeprocessor(Treeprocessor):
    """Apply :func:`join_cjk_lines` to prose text in the element tree."""

    def run(self, root: Element) -> None:
        """Walk ``root`` and rewrite text outside verbatim elements."""
        self._visit(root)

    def _visit(self, element: Element) -> None:
        for child in element:
            if child.tail:
                child.tail = join_cjk_lines(child.tail)
            if child.tag in VERBATIM_TAGS:
                continue
            if child.text:
                child.text = join_cjk_lines(child.text)
            self._visit(child)


class CjkLineBreakExtension(Extension):
    """Register the CJK soft-break treeprocessor after inline parsing."""

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Add :class:`CjkLineBreakTreeprocessor` below the inline stage."""
        md.treeprocessors.register(
            CjkLineBreakTreeprocessor(md), "pubmarkup_cjk_breaks", 8
        )


__all__ = [
    "CjkLineBreakExtension",
    "CjkLineBreakTreeprocessor",
    "is_wide_cjk",
    "join_cjk_lines",
]
