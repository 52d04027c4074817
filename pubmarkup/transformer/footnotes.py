"""Footnotes whose ids are namespaced by the document id."""

from __future__ import annotations

from markdown.extensions.footnotes import FootnoteExtension

FOOTNOTE_SEPARATOR = "-"


class ScopedFootnoteExtension(FootnoteExtension):
    """Footnotes with ids prefixed by ``<document_id><separator>``.

    Several documents rendered on one page would otherwise all produce
    ``fn-1`` and ``fnref-1``.
    """

    def __init__(self, document_id: str, separator: str, **kwargs: object) -> None:
        self.id_prefix = f"{document_id}{separator}"
        kwargs.setdefault("SEPARATOR", FOOTNOTE_SEPARATOR)
        super().__init__(**kwargs)

    def makeFootnoteId(self, *args: object, **kwargs: object) -> str:  # noqa: N802
        """Return the footnote id with the document prefix."""
        return f"{self.id_prefix}{super().makeFootnoteId(*args, **kwargs)}"

    def makeFootnoteRefId(self, *args: object, **kwargs: object) -> str:  # noqa: N802
        """Return the back-reference id with the document prefix."""
        return f"{self.id_prefix}{super().makeFootnoteRefId(*args, **kwargs)}"


__all__ = ["ScopedFootnoteExtension"]
