"""Per-render state shared by the Markdown extensions."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ..toc import HeadingEntry, InternalToc

if typ.TYPE_CHECKING:
    from ..config import MarkupSettings
    from ..highlighting import CodeHighlighter
    from .diagrams import DiagramRenderer


@dc.dataclass(slots=True)
class RenderContext:
    """Capture slots for a single render call.

    A fresh context is created for every document so concurrent renders never
    observe each other's headings, title, or anchor ids.

    Attributes
    ----------
    document_id : str
        Identifier used to namespace heading and footnote ids.
    settings : MarkupSettings
        Rendering settings in effect for this call.
    highlighter : CodeHighlighter, optional
        Highlighter for fenced code; ``None`` renders plain code blocks.
    diagrams : DiagramRenderer, optional
        Renderer for diagram fences; ``None`` renders them as code.
    used_ids : set[str]
        Heading ids already assigned in this document.
    headings : list[HeadingEntry]
        Headings captured in document order.
    title : str
        HTML-escaped document title, empty until one is found.
    heading_tree : InternalToc
        Nested headings under a synthetic level-0 root.
    """

    document_id: str
    settings: MarkupSettings
    highlighter: CodeHighlighter | None = None
    diagrams: DiagramRenderer | None = None
    used_ids: set[str] = dc.field(default_factory=set)
    headings: list[HeadingEntry] = dc.field(default_factory=list)
    title: str = ""
    heading_tree: InternalToc = dc.field(default_factory=lambda: InternalToc(level=0))


@dc.dataclass(frozen=True, slots=True)
class TransformResult:
    """Unsanitized output of :meth:`MarkdownTransformer.render`."""

    raw_html: str
    title: str
    heading_tree: InternalToc


__all__ = ["RenderContext", "TransformResult"]
