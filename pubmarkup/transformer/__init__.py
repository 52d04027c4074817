"""Markdown-to-HTML transformation with anchors, math, diagrams, and TOC capture."""

from .diagrams import DiagramRenderer
from .models import RenderContext, TransformResult
from .renderer import MarkdownTransformer

__all__ = [
    "DiagramRenderer",
    "MarkdownTransformer",
    "RenderContext",
    "TransformResult",
]
