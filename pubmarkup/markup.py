"""Render untrusted Markdown into sanitized display artifacts.

:func:`render_markup` is the entry point used by the rest of the
application. It turns one Markdown document into five artifacts:

* ``html``: sanitized display HTML,
* ``excerpt_html``: the same content without links, for previews,
* ``text``: escaped plain text with all markup removed,
* ``title``: the front matter title or first ``h1``, HTML-escaped,
* ``toc``: the nested table of contents.

The code highlighter loads on a background thread the first time the shared
pipeline is requested; applications call :func:`start_pipeline` during
startup so a broken highlighter fails the process early. Rendering waits for
the highlighter, so no caller ever sees unhighlighted code; if it cannot load
within ``highlighter_timeout`` seconds every render raises
:class:`~pubmarkup.highlighting.HighlighterInitError`.

Example
-------
>>> from pubmarkup.markup import render_markup
>>> rendered = render_markup("post-1", "# Hello\\n\\nSee [docs](https://x.test).")
>>> rendered.title
'Hello'
"""

from __future__ import annotations

import dataclasses as dc
import functools
import threading
import typing as typ

from .config import MarkupSettings, load_settings
from .highlighting import HighlighterLoader
from .sanitizer import excerpt_sanitizer, html_sanitizer, text_sanitizer
from .toc import Toc, build_toc, flatten_toc
from .transformer import MarkdownTransformer

if typ.TYPE_CHECKING:
    from .highlighting import CodeHighlighter


@dc.dataclass(frozen=True, slots=True)
class RenderedMarkup:
    """Sanitized artifacts produced from one Markdown document.

    Attributes
    ----------
    html : str
        Display HTML sanitized with the full profile.
    excerpt_html : str
        Display HTML without any ``<a>`` element.
    text : str
        Escaped plain text; contains no tags.
    title : str
        HTML-escaped document title or an empty string.
    toc : tuple[Toc, ...]
        Top-level table-of-contents entries.
    """

    html: str
    excerpt_html: str
    text: str
    title: str
    toc: tuple[Toc, ...]


class MarkupPipeline:
    """Glue the transformer, highlighter loader, and sanitizers together."""

    def __init__(
        self,
        settings: MarkupSettings | None = None,
        *,
        transformer: MarkdownTransformer | None = None,
        loader: HighlighterLoader | None = None,
    ) -> None:
        """Create a pipeline; call :meth:`start` to begin loading the highlighter."""
        self.settings = settings or MarkupSettings()
        self.transformer = transformer or MarkdownTransformer(self.settings)
        self.loader = loader or HighlighterLoader(settings=self.settings)
        self._install_lock = threading.Lock()
        self._installed = False

    def start(self) -> MarkupPipeline:
        """Begin loading the highlighter in the background."""
        self.loader.start()
        return self

    def render(self, document_id: str, markup: str) -> RenderedMarkup:
        """Render ``markup`` once the highlighter is available.

        Raises
        ------
        HighlighterInitError
            If the highlighter failed to load or is not ready within
            ``highlighter_timeout`` seconds.
        """
        self.wait_ready()
        return self._render(document_id, markup)

    async def render_async(self, document_id: str, markup: str) -> RenderedMarkup:
        """Await the highlighter without blocking the loop, then render."""
        highlighter = await self.loader.wait_async(self.settings.highlighter_timeout)
        self._install(highlighter)
        return self._render(document_id, markup)

    def wait_ready(self) -> None:
        """Block until the highlighter is loaded and installed."""
        self._install(self.loader.wait(self.settings.highlighter_timeout))

    def _install(self, highlighter: CodeHighlighter) -> None:
        if self._installed:
            return
        with self._install_lock:
            if not self._installed:
                self.transformer.install_highlighter(highlighter)
                self._installed = True

    def _render(self, document_id: str, markup: str) -> RenderedMarkup:
        result = self.transformer.render(document_id, markup)
        toc = build_toc(result.heading_tree)
        return RenderedMarkup(
            html=html_sanitizer.clean(result.raw_html),
            excerpt_html=excerpt_sanitizer.clean(result.raw_html),
            text=text_sanitizer.clean(result.raw_html),
            title=result.title,
            toc=flatten_toc(toc),
        )


@functools.lru_cache(maxsize=1)
def get_pipeline() -> MarkupPipeline:
    """Return the process-wide pipeline, loading settings on first use."""
    return MarkupPipeline(load_settings()).start()


def start_pipeline() -> MarkupPipeline:
    """Start the process-wide pipeline and block until it can render.

    Raises
    ------
    HighlighterInitError
        If the highlighter cannot be loaded; meant to abort startup.
    """
    pipeline = get_pipeline()
    pipeline.wait_ready()
    return pipeline


def render_markup(document_id: str, markup: str) -> RenderedMarkup:
    """Render ``markup`` with the process-wide pipeline.

    Parameters
    ----------
    document_id : str
        Stable identifier of the document; namespaces heading ids.
    markup : str
        Untrusted Markdown source.

    Returns
    -------
    RenderedMarkup
        Sanitized HTML, excerpt, text, title, and table of contents.

    Raises
    ------
    HighlighterInitError
        If the highlighter could not be loaded.
    """
    return get_pipeline().render(document_id, markup)


async def render_markup_async(document_id: str, markup: str) -> RenderedMarkup:
    """Asynchronous variant of :func:`render_markup`."""
    return await get_pipeline().render_async(document_id, markup)


__all__ = [
    "MarkupPipeline",
    "RenderedMarkup",
    "get_pipeline",
    "render_markup",
    "render_markup_async",
    "start_pipeline",
]
