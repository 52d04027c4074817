r"""Generate document-scoped heading anchors.

Heading ids must stay stable across edits of the same document while never
colliding with headings of another document rendered on the same page. Slugs
are therefore transliterated to ASCII, normalised, and prefixed with the
document identifier.

Example
-------
>>> from pubmarkup.slugs import slugify_heading
>>> slugify_heading("Hello, World!", "doc1")
'doc1--hello-world'
"""

from __future__ import annotations

import re
import unicodedata

from anyascii import anyascii

from ._constants import SLUG_FALLBACK, SLUG_SEPARATOR

UNSAFE_CHARS_PATTERN = re.compile(r"[^a-z0-9\s-]")
DASH_RUN_PATTERN = re.compile(r"[\s-]+")


def slugify_text(text: str) -> str:
    """Return the ASCII slug for ``text`` without any document prefix.

    Parameters
    ----------
    text : str
        Heading text; may contain any Unicode characters.

    Returns
    -------
    str
        Lowercase, hyphen-separated slug. ``"section"`` when nothing
        survives normalisation.
    """
    transliterated = anyascii(text)
    ascii_only = (
        unicodedata.normalize("NFKD", transliterated)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    stripped = UNSAFE_CHARS_PATTERN.sub("", ascii_only.lower())
    slug = DASH_RUN_PATTERN.sub("-", stripped).strip("-")
    return slug or SLUG_FALLBACK


def slugify_heading(
    text: str, document_id: str, *, separator: str = SLUG_SEPARATOR
) -> str:
    """Return the heading slug for ``text`` namespaced by ``document_id``.

    Parameters
    ----------
    text : str
        Heading text as it appears to readers.
    document_id : str
        Stable identifier of the document the heading belongs to.
    separator : str, optional
        Separator between the document id and the slug. Defaults to ``"--"``.

    Returns
    -------
    str
        ``document_id + separator + slug``; identical input always yields
        identical output.

    Examples
    --------
    >>> slugify_heading("Intro", "a") != slugify_heading("Intro", "b")
    True
    """
    return f"{document_id}{separator}{slugify_text(text)}"


def unique_slug(base: str, used: set[str]) -> str:
    """Generate a unique slug, appending numeric suffixes when needed."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


__all__ = ["slugify_heading", "slugify_text", "unique_slug"]
