r"""Table-of-contents structures built from captured headings.

The transformer captures headings as a flat, document-ordered list while it
assigns anchors. :func:`nest_headings` folds that list into an internal tree
rooted at a synthetic level-0 node, :func:`build_toc` maps the internal tree to
the immutable public :class:`Toc`, and :func:`flatten_toc` drops the synthetic
root.

Example
-------
>>> from pubmarkup.toc import HeadingEntry, build_toc, flatten_toc, nest_headings
>>> tree = nest_headings([HeadingEntry(1, "A", "a"), HeadingEntry(2, "B", "b")])
>>> [entry.title for entry in flatten_toc(build_toc(tree))]
['A']
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

MAX_HEADING_LEVEL = 6


@dc.dataclass(frozen=True, slots=True)
class HeadingEntry:
    """A heading captured while rendering.

    Attributes
    ----------
    level : int
        Heading level between 1 and 6.
    name : str
        HTML-escaped heading text.
    anchor : str
        The ``id`` assigned to the heading element.
    """

    level: int
    name: str
    anchor: str


@dc.dataclass(slots=True)
class InternalToc:
    """Mutable heading tree accumulated by the transformer."""

    level: int
    name: str = ""
    anchor: str = ""
    children: list[InternalToc] = dc.field(default_factory=list)


@dc.dataclass(frozen=True, slots=True)
class Toc:
    """Public table-of-contents node.

    Attributes
    ----------
    level : int
        Heading level; ``0`` only for the synthetic root.
    title : str
        HTML-escaped heading text with leading whitespace trimmed.
    anchor : str
        Fragment identifier of the heading, empty for the root.
    children : tuple[Toc, ...]
        Nested entries in document order; each has a greater level.
    """

    level: int
    title: str
    anchor: str = ""
    children: tuple[Toc, ...] = ()


def nest_headings(entries: cabc.Iterable[HeadingEntry]) -> InternalToc:
    """Fold document-ordered headings into a tree under a level-0 root."""
    root = InternalToc(level=0)
    stack: list[InternalToc] = [root]
    for entry in entries:
        level = min(max(entry.level, 1), MAX_HEADING_LEVEL)
        node = InternalToc(level=level, name=entry.name, anchor=entry.anchor)
        while stack[-1].level >= level:
            stack.pop()
        stack[-1].children.append(node)
        stack.append(node)
    return root


def build_toc(tree: InternalToc) -> Toc:
    """Map the internal heading tree onto immutable :class:`Toc` nodes.

    Parameters
    ----------
    tree : InternalToc
        Tree captured by the transformer, usually rooted at level ``0``.

    Returns
    -------
    Toc
        Structural copy of ``tree`` with names trimmed of leading whitespace.
    """
    return Toc(
        level=tree.level,
        title=tree.name.lstrip(),
        anchor=tree.anchor,
        children=tuple(build_toc(child) for child in tree.children),
    )


def flatten_toc(toc: Toc) -> tuple[Toc, ...]:
    """Return the root's children for a synthetic root, else the root itself."""
    if toc.level < 1:
        return toc.children
    return (toc,)


__all__ = [
    "MAX_HEADING_LEVEL",
    "HeadingEntry",
    "InternalToc",
    "Toc",
    "build_toc",
    "flatten_toc",
    "nest_headings",
]
