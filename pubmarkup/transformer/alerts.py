"""GitHub-style alert blockquotes rendered as admonitions.

``> [!NOTE]`` opening a blockquote turns it into::

    <div class="markdown-alert markdown-alert-note">
      <p class="markdown-alert-title">Note</p>
      ...
    </div>
"""

from __future__ import annotations

import re
import typing as typ
import xml.etree.ElementTree as etree

from markdown.blockprocessors import BlockQuoteProcessor
from markdown.extensions import Extension

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any

ALERT_KINDS = ("note", "tip", "important", "warning", "caution")
ALERT_PATTERN = re.compile(
    r"^[ ]{0,3}>[ ]?\[!(?P<kind>" + "|".join(ALERT_KINDS) + r")\][ \t]*(?:\n|$)",
    re.IGNORECASE,
)


class AlertBlockProcessor(BlockQuoteProcessor):
    """Parse a blockquote whose first line is an alert marker."""

    def test(self, parent: Element, block: str) -> bool:
        """Return ``True`` when ``block`` opens with an alert marker."""
        return bool(ALERT_PATTERN.match(block))

    def run(self, parent: Element, blocks: list[str]) -> None:
        """Render the alert container and parse its body as Markdown."""
        block = blocks.pop(0)
        match = ALERT_PATTERN.match(block)
        if match is None:  # pragma: no cover - guarded by test()
            blocks.insert(0, block)
            return
        kind = match.group("kind").lower()
        body = "\n".join(self.clean(line) for line in block[match.end() :].split("\n"))
        container = etree.SubElement(
            parent, "div", {"class": f"markdown-alert markdown-alert-{kind}"}
        )
        title = etree.SubElement(container, "p", {"class": "markdown-alert-title"})
        title.text = kind.title()
        self.parser.state.set("blockquote")
        self.parser.parseChunk(container, body)
        self.parser.state.reset()


class AlertExtension(Extension):
    """Register the alert block processor ahead of plain blockquotes."""

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Add :class:`AlertBlockProcessor` with a higher priority than quotes."""
        md.parser.blockprocessors.register(
            AlertBlockProcessor(md.parser), "pubmarkup_alert", 21
        )


__all__ = ["ALERT_KINDS", "AlertBlockProcessor", "AlertExtension"]
