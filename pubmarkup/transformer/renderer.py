"""Render untrusted Markdown into unsanitized HTML with captured metadata."""

from __future__ import annotations

import logging
import threading
import typing as typ

from markdown import Markdown

from .._constants import SVG_PREAMBLE_PATTERN
from ..config import MarkupSettings
from .alerts import AlertExtension
from .cjk import CjkLineBreakExtension
from .contents import TableOfContentsExtension
from .diagrams import DiagramRenderer
from .fences import FencedBlockExtension
from .footnotes import ScopedFootnoteExtension
from .headings import HeadingAnchorExtension
from .math import MathExtension
from .models import RenderContext, TransformResult
from .title import TitleExtension

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension

    from ..highlighting import CodeHighlighter
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

logger = logging.getLogger(__name__)


class MarkdownTransformer:
    """Convert Markdown to HTML with the pubmarkup extension set.

    Every call to :meth:`render` builds its own ``Markdown`` instance bound to
    a fresh :class:`RenderContext`, so one transformer can serve many threads.
    """

    def __init__(
        self,
        settings: MarkupSettings | None = None,
        *,
        diagrams: DiagramRenderer | None = None,
    ) -> None:
        """Initialize the transformer.

        Parameters
        ----------
        settings : MarkupSettings, optional
            Rendering settings; defaults to :class:`MarkupSettings`.
        diagrams : DiagramRenderer, optional
            Renderer for diagram fences; defaults to a Graphviz renderer using
            ``settings.diagram_engine``.
        """
        self.settings = settings or MarkupSettings()
        self.diagrams = diagrams or DiagramRenderer(self.settings.diagram_engine)
        self._highlighter: CodeHighlighter | None = None
        self._lock = threading.Lock()

    @property
    def highlighter(self) -> CodeHighlighter | None:
        """Return the installed highlighter, if any."""
        return self._highlighter

    def install_highlighter(self, highlighter: CodeHighlighter) -> bool:
        """Register ``highlighter`` for fenced code.

        Only the first installation takes effect; later calls are ignored.

        Returns
        -------
        bool
            ``True`` when this call installed the highlighter.
        """
        with self._lock:
            if self._highlighter is not None:
                return False
            self._highlighter = highlighter
            return True

    def render(self, document_id: str, markup: str) -> TransformResult:
        """Render ``markup`` for the document identified by ``document_id``.

        Parameters
        ----------
        document_id : str
            Stable identifier used to namespace heading and footnote ids.
        markup : str
            Untrusted Markdown source.

        Returns
        -------
        TransformResult
            Unsanitized HTML, the escaped title, and the heading tree.
        """
        context = RenderContext(
            document_id=document_id,
            settings=self.settings,
            highlighter=self._highlighter,
            diagrams=self.diagrams,
        )
        md = Markdown(extensions=self._extensions(context))
        raw_html = SVG_PREAMBLE_PATTERN.sub("", md.convert(markup))
        logger.debug("Processed Markdown for %s:\n%s", document_id, raw_html)
        return TransformResult(
            raw_html=raw_html,
            title=context.title,
            heading_tree=context.heading_tree,
        )

    def _extensions(self, context: RenderContext) -> list[Extension | str]:
        return [
            "abbr",
            AlertExtension(),
            HeadingAnchorExtension(context),
            CjkLineBreakExtension(),
            "def_list",
            ScopedFootnoteExtension(
                context.document_id, self.settings.slug_separator
            ),
            FencedBlockExtension(context),
            MathExtension(),
            TitleExtension(context),
            TableOfContentsExtension(context),
            "tables",
            "sane_lists",
        ]


__all__ = ["MarkdownTransformer"]
