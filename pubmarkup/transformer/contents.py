"""Table-of-contents capture and ``[TOC]`` placeholder substitution."""

from __future__ import annotations

import html
import typing as typ
import xml.etree.ElementTree as etree

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from ..toc import InternalToc, nest_headings

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown

    from .models import RenderContext
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any
    RenderContext = typ.Any


def build_nav(tree: InternalToc) -> Element:
    """Return a ``nav.table-of-contents`` element listing ``tree``."""
    nav = etree.Element("nav", {"class": "table-of-contents"})
    if tree.children:
        _append_list(nav, tree.children)
    return nav


def _append_list(parent: Element, nodes: list[InternalToc]) -> None:
    listing = etree.SubElement(parent, "ol")
    for node in nodes:
        item = etree.SubElement(listing, "li")
        link = etree.SubElement(item, "a", {"href": f"#{node.anchor}"})
        link.text = html.unescape(node.name).strip()
        if node.children:
            _append_list(item, node.children)


class TableOfContentsTreeprocessor(Treeprocessor):
    """Nest captured headings and substitute marker paragraphs."""

    def __init__(self, md: Markdown, context: RenderContext) -> None:
        super().__init__(md)
        self.context = context

    def run(self, root: Element) -> None:
        """Store the heading tree and replace each marker with a nav list."""
        context = self.context
        context.heading_tree = nest_headings(context.headings)
        marker = context.settings.toc_marker
        for parent in list(root.iter()):
            for index, child in enumerate(list(parent)):
                if child.tag != "p" or len(child):
                    continue
                if (child.text or "").strip() != marker:
                    continue
                nav = build_nav(context.heading_tree)
                nav.tail = child.tail
                parent.remove(child)
                parent.insert(index, nav)


class TableOfContentsExtension(Extension):
    """Capture the heading tree for the rendered document."""

    def __init__(self, context: RenderContext) -> None:
        self.context = context
        super().__init__()

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the contents treeprocessor after heading anchors."""
        md.treeprocessors.register(
            TableOfContentsTreeprocessor(md, self.context), "pubmarkup_toc", 4
        )


__all__ = ["TableOfContentsExtension", "TableOfContentsTreeprocessor", "build_nav"]
