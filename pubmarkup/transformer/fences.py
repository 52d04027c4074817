"""Fenced code, diagram, and display-math blocks.

Fences are replaced before block parsing by HTML stashed on the Markdown
instance, in the same way Python-Markdown's own ``fenced_code`` extension
works. The info string is split into a language and free-form metadata:
``rust,no_run`` and ``python {1,3}`` yield ``rust`` and ``python``.
"""

from __future__ import annotations

import html
import re
import typing as typ

from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor

from .math import render_math

if typ.TYPE_CHECKING:
    from markdown import Markdown

    from .models import RenderContext
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    RenderContext = typ.Any

FENCE_PATTERN = re.compile(
    r"^(?P<indent>[ ]{0,3})(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^\n`]*)\n"
    r"(?P<code>.*?)(?<=\n)[ ]{0,3}(?P=fence)[ \t]*$",
    re.MULTILINE | re.DOTALL,
)
DISPLAY_MATH_BLOCK_PATTERN = re.compile(
    r"^[ ]{0,3}\$\$[ \t]*\n(?P<tex>.*?)\n[ ]{0,3}\$\$[ \t]*$",
    re.MULTILINE | re.DOTALL,
)
INFO_SPLIT_PATTERN = re.compile(r"[\s,{]")


def split_info(info: str) -> tuple[str, str]:
    """Split a fence info string into ``(language, meta)``.

    Examples
    --------
    >>> split_info("rust,no_run")
    ('rust', 'no_run')
    >>> split_info("python {1,3}")
    ('python', '{1,3}')
    """
    info = info.strip()
    match = INFO_SPLIT_PATTERN.search(info)
    if match is None:
        return info.lower(), ""
    language = info[: match.start()].lower()
    meta = info[match.start() :]
    if meta.startswith(","):
        meta = meta[1:]
    return language, meta.strip()


def plain_code_block(code: str, language: str) -> str:
    """Return an unhighlighted ``<pre><code>`` block."""
    escaped = html.escape(code, quote=False)
    if not language:
        return f"<pre><code>{escaped}</code></pre>"
    safe_lang = html.escape(language, quote=True)
    return f'<pre><code class="language-{safe_lang}">{escaped}</code></pre>'


def _dedent(code: str, indent: int) -> str:
    if not indent:
        return code
    prefix = re.compile(rf"^[ ]{{0,{indent}}}", re.MULTILINE)
    return prefix.sub("", code)


class FencedBlockPreprocessor(Preprocessor):
    """Replace fenced blocks with rendered HTML placeholders."""

    def __init__(self, md: Markdown, context: RenderContext) -> None:
        super().__init__(md)
        self.context = context

    def run(self, lines: list[str]) -> list[str]:
        """Render every fence and ``$$`` block in ``lines``."""
        text = "\n".join(lines)
        text = self._replace(text, FENCE_PATTERN, self._render_fence)
        text = self._replace(text, DISPLAY_MATH_BLOCK_PATTERN, self._render_math)
        return text.split("\n")

    def _replace(
        self,
        text: str,
        pattern: re.Pattern[str],
        render: typ.Callable[[re.Match[str]], str],
    ) -> str:
        position = 0
        while match := pattern.search(text, position):
            placeholder = self.md.htmlStash.store(render(match))
            replacement = f"\n{placeholder}\n"
            text = f"{text[: match.start()]}{replacement}{text[match.end() :]}"
            position = match.start() + len(replacement)
        return text

    def _render_math(self, match: re.Match[str]) -> str:
        return render_math(match.group("tex"), display=True)

    def _render_fence(self, match: re.Match[str]) -> str:
        language, meta = split_info(match.group("info"))
        code = _dedent(match.group("code"), len(match.group("indent")))
        if code.endswith("\n"):
            code = code[:-1]
        context = self.context
        if language == "math":
            return render_math(code, display=True)
        diagrams = context.diagrams
        if language in context.settings.diagram_languages and diagrams is not None:
            svg = diagrams.render(code)
            if svg is not None:
                return f'<div class="diagram diagram-{language}">{svg}</div>'
        if context.highlighter is not None:
            return context.highlighter.highlight(code, language, meta)
        return plain_code_block(code, language)


class FencedBlockExtension(Extension):
    """Render fenced code with highlighting, diagrams, and display math."""

    def __init__(self, context: RenderContext) -> None:
        self.context = context
        super().__init__()

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the fence preprocessor ahead of raw HTML extraction."""
        md.registerExtension(self)
        md.preprocessors.register(
            FencedBlockPreprocessor(md, self.context), "pubmarkup_fences", 25
        )


__all__ = [
    "FencedBlockExtension",
    "FencedBlockPreprocessor",
    "plain_code_block",
    "split_info",
]
