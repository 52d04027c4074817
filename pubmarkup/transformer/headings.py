"""Heading ids, permalinks, and heading capture."""

from __future__ import annotations

import html
import re
import typing as typ
import xml.etree.ElementTree as etree

from markdown import util
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from .._constants import HEADING_TAGS
from ..slugs import slugify_heading, unique_slug
from ..toc import HeadingEntry

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from xml.etree.ElementTree import Element

    from markdown import Markdown

    from .models import RenderContext
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any
    RenderContext = typ.Any

ESCAPED_CHAR_PATTERN = re.compile(rf"{util.STX}(\d+){util.ETX}")


def heading_text(element: Element) -> str:
    """Return the visible plain text of a heading element.

    Footnote references and stashed raw HTML are dropped; backslash escapes
    and entities are resolved.
    """
    text = "".join(_visible_text(element))
    text = util.HTML_PLACEHOLDER_RE.sub("", text)
    text = ESCAPED_CHAR_PATTERN.sub(lambda match: chr(int(match.group(1))), text)
    text = text.replace(util.AMP_SUBSTITUTE, "&")
    return html.unescape(text).strip()


def _is_footnote_ref(element: Element) -> bool:
    return element.tag == "sup" and any(
        "footnote-ref" in (link.get("class") or "").split()
        for link in element.iter("a")
    )


def _visible_text(element: Element) -> cabc.Iterator[str]:
    if element.text:
        yield element.text
    for child in element:
        if not _is_footnote_ref(child):
            yield from _visible_text(child)
        if child.tail:
            yield child.tail


class HeadingAnchorTreeprocessor(Treeprocessor):
    """Assign document-scoped ids to headings and append permalinks."""

    def __init__(self, md: Markdown, context: RenderContext) -> None:
        super().__init__(md)
        self.context = context

    def run(self, root: Element) -> None:
        """Visit headings in document order and record them on the context."""
        context = self.context
        settings = context.settings
        context.used_ids.update(
            element.get("id") for element in root.iter() if element.get("id")
        )
        for element in root.iter():
            if element.tag not in HEADING_TAGS:
                continue
            text = heading_text(element)
            base = slugify_heading(
                text, context.document_id, separator=settings.slug_separator
            )
            anchor = unique_slug(base, context.used_ids)
            element.set("id", anchor)
            self._append_permalink(element, anchor)
            context.headings.append(
                HeadingEntry(
                    level=int(element.tag[1]),
                    name=html.escape(text, quote=False),
                    anchor=anchor,
                )
            )

    def _append_permalink(self, element: Element, anchor: str) -> None:
        settings = self.context.settings
        if len(element):
            last = element[-1]
            last.tail = f"{last.tail or ''} "
        else:
            element.text = f"{element.text or ''} "
        link = etree.SubElement(
            element, "a", {"class": "header-anchor", "href": f"#{anchor}"}
        )
        symbol = etree.SubElement(
            link,
            "span",
            {"aria-hidden": "true", "title": settings.permalink_title},
        )
        symbol.text = settings.permalink_symbol


class HeadingAnchorExtension(Extension):
    """Give every heading a stable, document-scoped anchor."""

    def __init__(self, context: RenderContext) -> None:
        self.context = context
        super().__init__()

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the anchor treeprocessor after inline parsing."""
        md.treeprocessors.register(
            HeadingAnchorTreeprocessor(md, self.context), "pubmarkup_anchors", 6
        )


__all__ = ["HeadingAnchorExtension", "HeadingAnchorTreeprocessor", "heading_text"]
