"""Document title capture from YAML front matter or the first ``h1``."""

from __future__ import annotations

import html
import typing as typ

from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from markdown.treeprocessors import Treeprocessor
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown

    from .models import RenderContext
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any
    RenderContext = typ.Any

FRONT_MATTER_OPEN = "---"
FRONT_MATTER_CLOSE = frozenset({"---", "..."})


def parse_front_matter(lines: list[str]) -> tuple[dict[str, typ.Any], int] | None:
    """Return the front matter mapping and the index of its closing line.

    ``None`` is returned when ``lines`` does not open with a parseable YAML
    mapping between ``---`` delimiters.
    """
    if not lines or lines[0].rstrip() != FRONT_MATTER_OPEN:
        return None
    end = next(
        (
            index
            for index, line in enumerate(lines[1:], start=1)
            if line.rstrip() in FRONT_MATTER_CLOSE
        ),
        None,
    )
    if end is None:
        return None
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load("\n".join(lines[1:end]))
    except (YAMLError, ValueError):
        return None
    if not isinstance(loaded, dict):
        return None
    return loaded, end


class FrontMatterPreprocessor(Preprocessor):
    """Strip leading front matter and record its ``title``."""

    def __init__(self, md: Markdown, context: RenderContext) -> None:
        super().__init__(md)
        self.context = context

    def run(self, lines: list[str]) -> list[str]:
        """Return ``lines`` without the front matter block."""
        parsed = parse_front_matter(lines)
        if parsed is None:
            return lines
        metadata, end = parsed
        title = metadata.get("title")
        if isinstance(title, str) and title.strip():
            self.context.title = html.escape(title.strip(), quote=False)
        return lines[end + 1 :]


class TitleTreeprocessor(Treeprocessor):
    """Fall back to the first level-1 heading when no title was declared."""

    def __init__(self, md: Markdown, context: RenderContext) -> None:
        super().__init__(md)
        self.context = context

    def run(self, root: Element) -> None:
        """Copy the first captured ``h1`` name into the context title."""
        if self.context.title:
            return
        first = next(
            (entry for entry in self.context.headings if entry.level == 1), None
        )
        if first is not None:
            self.context.title = first.name


class TitleExtension(Extension):
    """Capture the document title."""

    def __init__(self, context: RenderContext) -> None:
        self.context = context
        super().__init__()

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the front matter preprocessor and title treeprocessor."""
        md.preprocessors.register(
            FrontMatterPreprocessor(md, self.context), "pubmarkup_front_matter", 27
        )
        md.treeprocessors.register(
            TitleTreeprocessor(md, self.context), "pubmarkup_title", 5
        )


__all__ = [
    "FrontMatterPreprocessor",
    "TitleExtension",
    "TitleTreeprocessor",
    "parse_front_matter",
]
