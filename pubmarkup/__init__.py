"""Render untrusted Markdown into sanitized HTML, excerpts, text, and TOCs."""

from .emoji import render_custom_emojis
from .highlighting import HighlighterInitError
from .markup import (
    MarkupPipeline,
    RenderedMarkup,
    render_markup,
    render_markup_async,
    start_pipeline,
)
from .sanitizer import sanitize_html
from .slugs import slugify_heading
from .toc import Toc

__all__ = [
    "HighlighterInitError",
    "MarkupPipeline",
    "RenderedMarkup",
    "Toc",
    "render_custom_emojis",
    "render_markup",
    "render_markup_async",
    "sanitize_html",
    "slugify_heading",
    "start_pipeline",
]
