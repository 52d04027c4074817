"""Tests for the dual-theme code highlighter and its loader.

Usage
-----
Run ``pytest tests/test_highlighting.py -v``. Pygments ships the ``default``
and ``monokai`` styles, so no external services are required.
"""

from __future__ import annotations

import asyncio
import threading

import pytest
from bs4 import BeautifulSoup

from pubmarkup.config import MarkupSettings
from pubmarkup.highlighting import (
    CodeHighlighter,
    HighlighterInitError,
    HighlighterLoader,
    extract_notations,
)


@pytest.fixture(scope="module")
def highlighter() -> CodeHighlighter:
    """Return a highlighter using the default light and dark themes."""
    return CodeHighlighter.from_names("default", "monokai")


def _lines(html: str) -> list[BeautifulSoup]:
    soup = BeautifulSoup(html, "html.parser")
    return soup.select("pre > code > span.line")


def test_highlight_emits_dual_theme_block(highlighter: CodeHighlighter) -> None:
    """The ``pre`` carries theme classes and both background colours."""
    html = highlighter.highlight("def f():\n    return 1\n", "python")

    pre = BeautifulSoup(html, "html.parser").find("pre")
    assert pre is not None
    assert pre["class"] == ["highlight", "highlight-themes", "language-python"]
    style = pre["style"]
    assert "background-color:#f8f8f8" in style
    assert "--hl-dark-bg:#272822" in style
    assert len(_lines(html)) == 2


def test_highlight_tokens_carry_dark_variables(highlighter: CodeHighlighter) -> None:
    """Keyword tokens use light colours plus ``--hl-dark`` custom properties."""
    html = highlighter.highlight("def f(): pass", "python")

    soup = BeautifulSoup(html, "html.parser")
    keyword = next(span for span in soup.select("span[style]") if span.string == "def")
    assert "color:#" in keyword["style"]
    assert "--hl-dark:#" in keyword["style"]


def test_unknown_language_falls_back_to_text(highlighter: CodeHighlighter) -> None:
    """Unknown languages still render their code verbatim."""
    html = highlighter.highlight("a < b", "no-such-language")

    soup = BeautifulSoup(html, "html.parser")
    assert "language-no-such-language" in soup.find("pre")["class"]
    assert soup.get_text() == "a < b"


def test_diff_notation(highlighter: CodeHighlighter) -> None:
    """Diff notations mark lines and are removed from the output."""
    html = highlighter.highlight("a = 1  # [!code ++]\nb = 2  # [!code --]", "python")

    lines = _lines(html)
    assert lines[0]["class"] == ["line", "diff", "add"]
    assert lines[1]["class"] == ["line", "diff", "remove"]
    assert "[!code" not in html
    assert "has-diff" in BeautifulSoup(html, "html.parser").find("pre")["class"]


def test_standalone_notation_applies_to_following_lines(
    highlighter: CodeHighlighter,
) -> None:
    """A notation alone on its line decorates the next lines and disappears."""
    code = "// [!code highlight:2]\nlet a = 1;\nlet b = 2;\nlet c = 3;"

    lines = _lines(highlighter.highlight(code, "javascript"))

    assert len(lines) == 3
    assert "highlighted" in lines[0]["class"]
    assert "highlighted" in lines[1]["class"]
    assert "highlighted" not in lines[2]["class"]


def test_meta_line_ranges(highlighter: CodeHighlighter) -> None:
    """``{1,3-4}`` in the fence meta highlights those 1-based lines."""
    lines = _lines(highlighter.highlight("a\nb\nc\nd\ne", "text", "{1,3-4}"))

    marked = ["highlighted" in line["class"] for line in lines]
    assert marked == [True, False, True, True, False]


@pytest.mark.parametrize(
    ("meta", "expected"),
    [
        ("{1-99999999999999}", [True, True, True]),
        ("{0-3}", [True, True, True]),
        ("{00002-9}", [False, True, True]),
        ("{" + "9" * 5000 + "}", [False, False, False]),
        ("{3-1}", [False, False, False]),
    ],
)
def test_meta_line_ranges_are_clamped(
    highlighter: CodeHighlighter, meta: str, expected: list[bool]
) -> None:
    """Ranges reaching past the block stop at its last line."""
    lines = _lines(highlighter.highlight("a\nb\nc", "text", meta))

    assert ["highlighted" in line["class"] for line in lines] == expected


def test_word_highlighting(highlighter: CodeHighlighter) -> None:
    """Words named in meta or notations are wrapped in ``highlighted-word``."""
    html = highlighter.highlight("value = value + 1", "python", "/value/")

    words = BeautifulSoup(html, "html.parser").select("span.highlighted-word")
    assert [word.get_text() for word in words] == ["value", "value"]


def test_word_notation_limited_to_count(highlighter: CodeHighlighter) -> None:
    """``[!code word:x:1]`` only affects the next line."""
    code = "# [!code word:x:1]\nx = 1\nx = 2"

    lines = _lines(highlighter.highlight(code, "python"))

    assert lines[0].select("span.highlighted-word")
    assert not lines[1].select("span.highlighted-word")


def test_focus_notation(highlighter: CodeHighlighter) -> None:
    """Focus notations add ``focused`` and mark the block."""
    html = highlighter.highlight("a\nb  // [!code focus]", "c")

    lines = _lines(html)
    assert "focused" not in lines[0]["class"]
    assert "focused" in lines[1]["class"]
    assert "has-focused" in BeautifulSoup(html, "html.parser").find("pre")["class"]


def test_extract_notations_reports_positions() -> None:
    """Notations are anchored to the line they decorate."""
    lines, notations = extract_notations("-- [!code hl]\nselect 1; -- [!code ++]")

    assert [line.text for line in lines] == ["select 1;"]
    assert [(item.line, item.name) for item in notations] == [(0, "hl"), (0, "++")]


def test_trailing_notation_applies_to_last_line(highlighter: CodeHighlighter) -> None:
    """A notation comment closing the block decorates the line before it."""
    code = "a = 1\nb = 2\n# [!code focus]"
    lines, notations = extract_notations(code)

    assert [line.text for line in lines] == ["a = 1", "b = 2"]
    assert [(item.line, item.name) for item in notations] == [(1, "focus")]

    rendered = _lines(highlighter.highlight(code, "python"))
    assert "focused" not in rendered[0]["class"]
    assert "focused" in rendered[1]["class"]


def test_loader_runs_factory_once() -> None:
    """Concurrent waiters share a single initialization."""
    release = threading.Event()
    calls: list[int] = []
    expected = CodeHighlighter.from_names("default", "monokai")

    def factory() -> CodeHighlighter:
        calls.append(1)
        release.wait(5)
        return expected

    loader = HighlighterLoader(factory)
    results: list[CodeHighlighter] = []
    threads = [
        threading.Thread(target=lambda: results.append(loader.wait(5)))
        for _ in range(4)
    ]
    for thread in threads:
        thread.start()
    assert loader.start() is loader.start()
    assert not loader.ready
    release.set()
    for thread in threads:
        thread.join(5)

    assert results == [expected] * 4
    assert calls == [1]
    assert loader.ready


def test_loader_failure_is_not_retried() -> None:
    """A failed load raises on every wait without calling the factory again."""
    calls: list[int] = []

    def factory() -> CodeHighlighter:
        calls.append(1)
        msg = "theme download failed"
        raise OSError(msg)

    loader = HighlighterLoader(factory)

    with pytest.raises(HighlighterInitError, match="theme download failed"):
        loader.wait(5)
    with pytest.raises(HighlighterInitError):
        loader.wait(5)
    assert calls == [1]
    assert not loader.ready


def test_loader_timeout() -> None:
    """Waiting longer than the timeout raises instead of hanging."""
    release = threading.Event()

    def factory() -> CodeHighlighter:
        release.wait(5)
        return CodeHighlighter.from_names("default", "monokai")

    loader = HighlighterLoader(factory)
    try:
        with pytest.raises(HighlighterInitError, match="not ready"):
            loader.wait(0.05)
    finally:
        release.set()


def test_loader_unknown_theme() -> None:
    """Unknown Pygments styles surface as initialization errors."""
    loader = HighlighterLoader(settings=MarkupSettings(dark_theme="no-such-theme"))

    with pytest.raises(HighlighterInitError):
        loader.wait(5)


def test_loader_wait_async() -> None:
    """Async callers receive the same highlighter as sync callers."""
    loader = HighlighterLoader(settings=MarkupSettings())

    highlighter = asyncio.run(loader.wait_async(5))

    assert highlighter is loader.wait(5)
