"""Unit tests for table-of-contents nesting and flattening."""

from __future__ import annotations

from pubmarkup.toc import (
    HeadingEntry,
    InternalToc,
    Toc,
    build_toc,
    flatten_toc,
    nest_headings,
)


def _entries(*pairs: tuple[int, str]) -> list[HeadingEntry]:
    return [HeadingEntry(level, name, f"doc--{name.lower()}") for level, name in pairs]


def test_nest_headings_builds_levels_under_root() -> None:
    """Deeper headings nest under the closest shallower heading."""
    tree = nest_headings(_entries((1, "A"), (2, "B"), (2, "C"), (1, "D"), (3, "E")))

    assert tree.level == 0
    assert [child.name for child in tree.children] == ["A", "D"]
    assert [child.name for child in tree.children[0].children] == ["B", "C"]
    assert [child.name for child in tree.children[1].children] == ["E"]


def test_nest_headings_starting_below_level_one() -> None:
    """Documents that start at ``h2`` keep their headings at the top level."""
    tree = nest_headings(_entries((2, "A"), (3, "B"), (2, "C")))

    assert [child.name for child in tree.children] == ["A", "C"]
    assert tree.children[0].children[0].name == "B"


def test_nest_headings_clamps_levels() -> None:
    """Out-of-range levels are clamped to the heading range."""
    tree = nest_headings([HeadingEntry(0, "Zero", "z"), HeadingEntry(9, "Nine", "n")])

    assert tree.children[0].level == 1
    assert tree.children[0].children[0].level == 6


def test_build_toc_copies_structure_and_trims_names() -> None:
    """Every node keeps its level, anchor, and children; names lose leading space."""
    tree = InternalToc(
        level=0,
        children=[
            InternalToc(
                level=1,
                name="  Intro",
                anchor="doc--intro",
                children=[InternalToc(level=2, name=" Details", anchor="doc--details")],
            )
        ],
    )

    toc = build_toc(tree)

    assert toc == Toc(
        level=0,
        title="",
        anchor="",
        children=(
            Toc(
                level=1,
                title="Intro",
                anchor="doc--intro",
                children=(Toc(level=2, title="Details", anchor="doc--details"),),
            ),
        ),
    )


def test_flatten_toc_drops_synthetic_root() -> None:
    """A level-0 root is replaced by its children."""
    toc = build_toc(nest_headings(_entries((1, "A"), (1, "B"))))

    assert [entry.title for entry in flatten_toc(toc)] == ["A", "B"]


def test_flatten_toc_keeps_real_root() -> None:
    """A root at level one or deeper is returned as the only entry."""
    toc = Toc(level=1, title="Only", anchor="doc--only")

    assert flatten_toc(toc) == (toc,)
