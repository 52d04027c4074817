"""End-to-end tests for the sanitized rendering pipeline.

Usage
-----
Run ``pytest tests/test_markup.py -v``. The property-based test uses
hypothesis to feed arbitrary text through the whole pipeline.
"""

from __future__ import annotations

import asyncio
import functools
import threading
import typing as typ

import msgspec
import pytest
from bs4 import BeautifulSoup
from hypothesis import given, settings
from hypothesis import strategies as st

from pubmarkup.config import MarkupSettings
from pubmarkup.highlighting import (
    CodeHighlighter,
    HighlighterInitError,
    HighlighterLoader,
)
from pubmarkup.markup import MarkupPipeline, RenderedMarkup

if typ.TYPE_CHECKING:
    from pubmarkup.toc import Toc

XSS_MARKUP = """\
# Welcome <img src=x onerror=alert(1)>

<script>alert("owned")</script>

[click](javascript:alert(1)) and [docs](https://example.test/docs)

<div style="color: red; position: fixed; background-color: url(https://evil.test)">
styled
</div>
"""


@pytest.fixture(scope="module")
def pipeline() -> MarkupPipeline:
    """Return a started pipeline shared by the tests in this module."""
    return MarkupPipeline(MarkupSettings()).start()


def test_render_produces_all_artifacts(pipeline: MarkupPipeline) -> None:
    """A render yields sanitized HTML, excerpt, text, title, and TOC."""
    rendered = pipeline.render(
        "post", "# Hello\n\nSee [docs](https://example.test).\n\n## Part\n"
    )

    assert isinstance(rendered, RenderedMarkup)
    assert rendered.title == "Hello"
    soup = BeautifulSoup(rendered.html, "html.parser")
    assert soup.find("h1")["id"] == "post--hello"
    assert soup.find("a", href="https://example.test") is not None
    assert "See docs." in rendered.text
    assert [entry.title for entry in rendered.toc] == ["Hello"]
    assert rendered.toc[0].children[0].anchor == "post--part"


def test_sanitization_closure(pipeline: MarkupPipeline) -> None:
    """No script, event handler, or unsafe URL reaches any artifact."""
    rendered = pipeline.render("post", XSS_MARKUP)

    for artifact in (rendered.html, rendered.excerpt_html, rendered.text):
        lowered = artifact.lower()
        assert "<script" not in lowered
        assert "onerror" not in lowered
        assert "javascript:" not in lowered
        assert "evil.test" not in lowered
    assert 'alert("owned")' not in rendered.html
    div = BeautifulSoup(rendered.html, "html.parser").find("div")
    assert "position" not in div.get("style", "")
    assert "color:red" in div.get("style", "").replace(" ", "")


def test_excerpt_has_no_links(pipeline: MarkupPipeline) -> None:
    """Excerpts keep text but never anchor elements."""
    rendered = pipeline.render("post", "# Title\n\nRead [more](https://example.test).")

    soup = BeautifulSoup(rendered.excerpt_html, "html.parser")
    assert soup.find("a") is None
    assert "Read more." in soup.get_text()


def test_text_has_no_markup(pipeline: MarkupPipeline) -> None:
    """The text artifact is free of tags."""
    rendered = pipeline.render(
        "post", "**bold** <em>x</em> `a < b`\n\n```python\nif a < b: pass\n```\n"
    )

    assert "<" not in rendered.text
    assert "bold" in rendered.text
    assert "a &lt; b" in rendered.text


def test_code_blocks_are_highlighted(pipeline: MarkupPipeline) -> None:
    """Fenced code in the display HTML keeps the highlighter styling."""
    rendered = pipeline.render("post", "```python\nimport os\n```\n")

    pre = BeautifulSoup(rendered.html, "html.parser").find("pre")
    assert "highlight-themes" in pre["class"]
    assert "--hl-dark-bg" in pre["style"]
    styled = [span for span in pre.select("span[style]") if "--hl-dark" in span["style"]]
    assert styled


def test_toc_mirrors_heading_levels(pipeline: MarkupPipeline) -> None:
    """The TOC keeps heading order and nesting."""
    rendered = pipeline.render("doc", "# A\n\n## B\n\n### C\n\n## D\n\n# E\n")

    def _shape(entries: tuple[Toc, ...]) -> list[object]:
        return [(entry.level, entry.title, _shape(entry.children)) for entry in entries]

    assert _shape(rendered.toc) == [
        (1, "A", [(2, "B", [(3, "C", [])]), (2, "D", [])]),
        (1, "E", []),
    ]


def test_rendered_markup_serialises_with_msgspec(pipeline: MarkupPipeline) -> None:
    """Rendered artifacts encode to JSON for storage."""
    rendered = pipeline.render("doc", "# A\n\ntext")

    payload = msgspec.json.decode(msgspec.json.encode(rendered))

    assert payload["title"] == "A"
    assert payload["toc"][0]["anchor"] == "doc--a"
    assert set(payload) == {"html", "excerpt_html", "text", "title", "toc"}


def test_render_async(pipeline: MarkupPipeline) -> None:
    """The async entry point returns the same artifacts as the sync one."""
    markup = "# Async\n\nbody"

    rendered = asyncio.run(pipeline.render_async("doc", markup))

    assert rendered == pipeline.render("doc", markup)


def test_render_waits_for_highlighter() -> None:
    """Renders issued before initialization finishes still get highlighting."""
    release = threading.Event()

    def factory() -> CodeHighlighter:
        release.wait(5)
        return CodeHighlighter.from_names("default", "monokai")

    pipeline = MarkupPipeline(loader=HighlighterLoader(factory)).start()
    results: list[RenderedMarkup] = []
    worker = threading.Thread(
        target=lambda: results.append(
            pipeline.render("doc", "```python\nx = 1\n```\n")
        )
    )
    worker.start()
    worker.join(0.1)
    assert not results
    release.set()
    worker.join(5)

    pre = BeautifulSoup(results[0].html, "html.parser").find("pre")
    assert "highlight-themes" in pre["class"]


def test_render_raises_when_highlighter_fails() -> None:
    """Initialization failures surface to the caller."""

    def factory() -> CodeHighlighter:
        msg = "no themes"
        raise OSError(msg)

    pipeline = MarkupPipeline(loader=HighlighterLoader(factory)).start()

    with pytest.raises(HighlighterInitError):
        pipeline.render("doc", "text")


@functools.cache
def _shared_pipeline() -> MarkupPipeline:
    return MarkupPipeline(MarkupSettings()).start()


@settings(max_examples=50, deadline=None)
@given(markup=st.text(max_size=200))
def test_render_never_raises(markup: str) -> None:
    """Arbitrary input renders without errors and with tag-free text."""
    rendered = _shared_pipeline().render("fuzz", markup)

    assert isinstance(rendered.html, str)
    assert "<" not in rendered.text


FENCE_META = st.one_of(
    st.text(alphabet="{}0123456789,- ", max_size=40),
    st.builds(
        "{{{}-{}}}".format,
        st.integers(min_value=0, max_value=10**20),
        st.integers(min_value=0, max_value=10**20),
    ),
    st.text(max_size=40).filter(lambda meta: "\n" not in meta and "`" not in meta),
)


@settings(max_examples=50, deadline=None)
@given(meta=FENCE_META, body=st.text(max_size=80))
def test_fence_meta_never_raises(meta: str, body: str) -> None:
    """Author-supplied fence info strings render without errors."""
    markup = f"```python {meta}\n{body}\n```\n"

    rendered = _shared_pipeline().render("fuzz", markup)

    assert isinstance(rendered.html, str)
    assert "<" not in rendered.text
