"""Dual-theme syntax highlighting for fenced code blocks.

Code is tokenized with Pygments and emitted with inline styles for two
themes at once: the light theme as regular CSS properties, the dark theme as
``--hl-dark*`` custom properties that a stylesheet can switch to. Lines are
wrapped individually so notation comments (``[!code ++]``, ``[!code hl]``,
``[!code focus]`` and friends) and fence metadata (``{1,3-4}``, ``/word/``)
can decorate them.

Loading styles and building the transformer chain happens once per process
on a worker thread, coordinated by :class:`HighlighterLoader`.

Example
-------
>>> from pubmarkup.highlighting import CodeHighlighter
>>> html = CodeHighlighter.from_names("default", "monokai").highlight("x = 1", "py")
>>> html.startswith('<pre class="highlight highlight-themes language-py"')
True
"""

from __future__ import annotations

import asyncio
import concurrent.futures as cf
import dataclasses as dc
import html
import logging
import re
import threading
import typing as typ

from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer
from pygments.styles import get_style_by_name
from pygments.token import Token
from pygments.util import ClassNotFound

from .config import MarkupSettings

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pygments.lexer import Lexer
    from pygments.style import StyleMeta
    from pygments.token import _TokenType

logger = logging.getLogger(__name__)

NOTATION_COMMENT_PATTERN = re.compile(
    r"[ \t]*(?://|#|--|;|%|/\*|<!--)[ \t]*"
    r"(?P<body>(?:\[!code [^\]]+\][ \t]*)+)"
    r"(?:\*/|-->)?[ \t]*$"
)
NOTATION_PATTERN = re.compile(
    r"\[!code (?P<name>\+\+|--|highlight|hl|word|focus)(?::(?P<arg>[^\]]+))?\]"
)
META_RANGE_PATTERN = re.compile(r"\{(?P<ranges>[\d,\s-]+)\}")
DIGITS_PATTERN = re.compile(r"[0-9]+")
META_WORD_PATTERN = re.compile(r"/(?P<word>(?:[^/\\\s]|\\.)+)/")
LANGUAGE_CLASS_PATTERN = re.compile(r"[^A-Za-z0-9_+#.-]")


class HighlighterInitError(RuntimeError):
    """Raised when the highlighter cannot be loaded or loads too slowly."""


@dc.dataclass(slots=True)
class CodeLine:
    """One source line and the decorations transformers attached to it."""

    text: str
    classes: list[str] = dc.field(default_factory=list)
    words: list[str] = dc.field(default_factory=list)

    def add_class(self, name: str) -> None:
        """Attach ``name`` to the line unless it is already present."""
        if name not in self.classes:
            self.classes.append(name)


@dc.dataclass(frozen=True, slots=True)
class Notation:
    """A ``[!code ...]`` directive anchored to the line it applies to."""

    line: int
    name: str
    arg: str | None = None


@dc.dataclass(slots=True)
class CodeBlock:
    """Mutable state threaded through the transformer chain."""

    lines: list[CodeLine]
    meta: str = ""
    notations: list[Notation] = dc.field(default_factory=list)
    pre_classes: list[str] = dc.field(default_factory=list)

    def add_pre_class(self, name: str) -> None:
        """Attach ``name`` to the ``<pre>`` element once."""
        if name not in self.pre_classes:
            self.pre_classes.append(name)


class CodeTransformer(typ.Protocol):
    """Decorate lines of a :class:`CodeBlock` in place."""

    def transform(self, block: CodeBlock) -> None:
        """Apply this transformer's decorations to ``block``."""
        ...


def _notation_count(arg: str | None, default: int) -> int:
    """Return the line count carried by a notation argument."""
    if arg is None:
        return default
    try:
        return max(int(arg), 1)
    except ValueError:
        return default


def _decorate(block: CodeBlock, start: int, count: int, name: str) -> None:
    for line in block.lines[start : start + count]:
        line.add_class(name)


class DiffNotationTransformer:
    """Mark lines annotated with ``[!code ++]`` or ``[!code --]``."""

    def transform(self, block: CodeBlock) -> None:
        """Apply ``diff add``/``diff remove`` classes."""
        for notation in block.notations:
            if notation.name not in {"++", "--"}:
                continue
            kind = "add" if notation.name == "++" else "remove"
            _decorate(block, notation.line, 1, "diff")
            _decorate(block, notation.line, 1, kind)
            block.add_pre_class("has-diff")


class HighlightNotationTransformer:
    """Mark lines annotated with ``[!code highlight]`` or ``[!code hl:N]``."""

    def transform(self, block: CodeBlock) -> None:
        """Apply the ``highlighted`` class to the annotated lines."""
        for notation in block.notations:
            if notation.name not in {"highlight", "hl"}:
                continue
            count = _notation_count(notation.arg, 1)
            _decorate(block, notation.line, count, "highlighted")
            block.add_pre_class("has-highlighted")


class MetaHighlightTransformer:
    """Highlight the 1-based line ranges listed as ``{1,3-4}`` in fence meta."""

    def transform(self, block: CodeBlock) -> None:
        """Apply the ``highlighted`` class to every line in the meta ranges."""
        match = META_RANGE_PATTERN.search(block.meta)
        if match is None:
            return
        for number in _parse_ranges(match.group("ranges"), len(block.lines)):
            block.lines[number - 1].add_class("highlighted")
            block.add_pre_class("has-highlighted")


def _line_number(digits: str, line_count: int) -> int:
    """Return ``digits`` as a line number, saturated just past ``line_count``."""
    significant = digits.lstrip("0")
    if len(significant) > len(str(line_count)):
        return line_count + 1
    return int(significant or "0")


def _parse_ranges(text: str, line_count: int) -> cabc.Iterator[int]:
    """Yield the 1-based line numbers of ``text`` that exist in the block."""
    for part in text.split(","):
        bounds = [piece.strip() for piece in part.split("-", 1)]
        if not all(DIGITS_PATTERN.fullmatch(piece) for piece in bounds):
            continue
        first = max(_line_number(bounds[0], line_count), 1)
        last = min(_line_number(bounds[-1], line_count), line_count)
        yield from range(first, last + 1)


class WordNotationTransformer:
    """Highlight a word on the following lines via ``[!code word:foo:N]``.

    Without a count the word is highlighted up to the end of the block.
    """

    def transform(self, block: CodeBlock) -> None:
        """Record highlighted words on the lines they apply to."""
        for notation in block.notations:
            if notation.name != "word" or not notation.arg:
                continue
            word, _, count_text = notation.arg.partition(":")
            if not word:
                continue
            count = _notation_count(count_text or None, len(block.lines))
            for line in block.lines[notation.line : notation.line + count]:
                if word not in line.words:
                    line.words.append(word)


class MetaWordTransformer:
    """Highlight every ``/word/`` listed in fence meta across all lines."""

    def transform(self, block: CodeBlock) -> None:
        """Record the meta words on every line."""
        for match in META_WORD_PATTERN.finditer(block.meta):
            word = re.sub(r"\\(.)", r"\1", match.group("word"))
            for line in block.lines:
                if word not in line.words:
                    line.words.append(word)


class FocusNotationTransformer:
    """Mark lines annotated with ``[!code focus]`` or ``[!code focus:N]``."""

    def transform(self, block: CodeBlock) -> None:
        """Apply the ``focused`` class to the annotated lines."""
        for notation in block.notations:
            if notation.name != "focus":
                continue
            count = _notation_count(notation.arg, 1)
            _decorate(block, notation.line, count, "focused")
            block.add_pre_class("has-focused")


def default_transformers() -> tuple[CodeTransformer, ...]:
    """Return the notation transformers in their fixed application order."""
    return (
        DiffNotationTransformer(),
        HighlightNotationTransformer(),
        MetaHighlightTransformer(),
        WordNotationTransformer(),
        MetaWordTransformer(),
        FocusNotationTransformer(),
    )


def extract_notations(code: str) -> tuple[list[CodeLine], list[Notation]]:
    """Strip notation comments from ``code`` and anchor them to lines.

    A notation trailing code applies to its own line. A comment alone on its
    line is removed together with the line and applies to the next line, or to
    the last line when nothing follows it.

    Parameters
    ----------
    code : str
        Raw code block contents.

    Returns
    -------
    tuple[list[CodeLine], list[Notation]]
        The remaining lines and the directives found, in source order.
    """
    lines: list[CodeLine] = []
    notations: list[Notation] = []
    pending: list[tuple[str, str | None]] = []
    for raw in code.split("\n"):
        match = NOTATION_COMMENT_PATTERN.search(raw)
        found: list[tuple[str, str | None]] = []
        text = raw
        if match is not None:
            found = [
                (item.group("name"), item.group("arg"))
                for item in NOTATION_PATTERN.finditer(match.group("body"))
            ]
            if found:
                text = raw[: match.start()]
        if found and not text.strip():
            pending.extend(found)
            continue
        index = len(lines)
        lines.append(CodeLine(text=text))
        notations.extend(Notation(index, name, arg) for name, arg in pending)
        notations.extend(Notation(index, name, arg) for name, arg in found)
        pending = []
    if pending and lines:
        index = len(lines) - 1
        notations.extend(Notation(index, name, arg) for name, arg in pending)
    return lines, notations


def _hex(color: str | None) -> str | None:
    if not color:
        return None
    return color if color.startswith("#") else f"#{color}"


def _style_properties(
    style: StyleMeta, token_type: _TokenType, prefix: str
) -> dict[str, str]:
    """Return CSS properties for ``token_type`` under ``style``."""
    definition = style.style_for_token(token_type)
    properties: dict[str, str] = {}
    color = _hex(definition.get("color"))
    if color:
        properties[f"{prefix}color"] = color
    if definition.get("italic"):
        properties[f"{prefix}font-style"] = "italic"
    if definition.get("bold"):
        properties[f"{prefix}font-weight"] = "bold"
    if definition.get("underline"):
        properties[f"{prefix}text-decoration"] = "underline"
    return properties


class CodeHighlighter:
    """Render code blocks with light and dark Pygments themes.

    Instances are immutable after construction apart from an internal style
    cache and can be shared between threads.
    """

    def __init__(
        self,
        light_style: StyleMeta,
        dark_style: StyleMeta,
        transformers: cabc.Sequence[CodeTransformer] | None = None,
    ) -> None:
        """Bind the highlighter to two Pygments styles and a transformer chain.

        Parameters
        ----------
        light_style : StyleMeta
            Pygments style class used for the regular CSS properties.
        dark_style : StyleMeta
            Pygments style class emitted through ``--hl-dark*`` properties.
        transformers : Sequence[CodeTransformer], optional
            Line decorators applied in order; defaults to
            :func:`default_transformers`.
        """
        self.light_style = light_style
        self.dark_style = dark_style
        self.transformers = tuple(
            default_transformers() if transformers is None else transformers
        )
        self._token_styles: dict[_TokenType, str] = {}
        self._pre_style = self._build_pre_style()

    @classmethod
    def from_names(cls, light_theme: str, dark_theme: str) -> CodeHighlighter:
        """Build a highlighter from Pygments style names.

        Raises
        ------
        pygments.util.ClassNotFound
            If either style name is unknown.
        """
        return cls(get_style_by_name(light_theme), get_style_by_name(dark_theme))

    @classmethod
    def from_settings(cls, settings: MarkupSettings) -> CodeHighlighter:
        """Build a highlighter from the themes named in ``settings``."""
        return cls.from_names(settings.light_theme, settings.dark_theme)

    def highlight(self, code: str, language: str | None, meta: str = "") -> str:
        """Return ``code`` as dual-theme highlighted HTML.

        Parameters
        ----------
        code : str
            Source text without the surrounding fence.
        language : str, optional
            Fence language; unknown or missing languages render as plain text.
        meta : str, optional
            Remainder of the fence info string after the language.

        Returns
        -------
        str
            A ``<pre class="highlight highlight-themes ...">`` element.
        """
        lang = LANGUAGE_CLASS_PATTERN.sub("", (language or "").lower()) or "text"
        lines, notations = extract_notations(code.rstrip("\n"))
        block = CodeBlock(lines=lines, meta=meta, notations=notations)
        for transformer in self.transformers:
            transformer.transform(block)

        tokens = self._tokenize("\n".join(line.text for line in block.lines), lang)
        rendered = [
            self._render_line(line, segments)
            for line, segments in zip(block.lines, tokens, strict=False)
        ]
        classes = " ".join(
            ["highlight", "highlight-themes", f"language-{lang}", *block.pre_classes]
        )
        body = "\n".join(rendered)
        return (
            f'<pre class="{classes}" style="{self._pre_style}">'
            f"<code>{body}</code></pre>"
        )

    def _tokenize(self, code: str, lang: str) -> list[list[tuple[_TokenType, str]]]:
        """Split the lexer's token stream into per-line segment lists."""
        lexer = _lexer_for(lang)
        lines: list[list[tuple[_TokenType, str]]] = [[]]
        for token_type, value in lexer.get_tokens(code):
            parts = value.split("\n")
            for index, part in enumerate(parts):
                if index:
                    lines.append([])
                if part:
                    lines[-1].append((token_type, part))
        return lines

    def _render_line(
        self, line: CodeLine, segments: list[tuple[_TokenType, str]]
    ) -> str:
        classes = " ".join(["line", *line.classes])
        if line.words:
            content = self._render_words(segments, line.words)
        else:
            content = "".join(
                self._render_token(token_type, text) for token_type, text in segments
            )
        return f'<span class="{classes}">{content}</span>'

    def _render_words(
        self, segments: list[tuple[_TokenType, str]], words: list[str]
    ) -> str:
        """Render ``segments`` with each occurrence of ``words`` wrapped."""
        text = "".join(value for _, value in segments)
        ranges = _word_ranges(text, words)
        pieces: list[str] = []
        current: int | None = None
        position = 0
        for token_type, value in segments:
            for start, end, chunk in _split_at(value, position, ranges):
                owner = next(
                    (
                        index
                        for index, (first, last) in enumerate(ranges)
                        if first <= start and end <= last
                    ),
                    None,
                )
                if owner != current:
                    if current is not None:
                        pieces.append("</span>")
                    if owner is not None:
                        pieces.append('<span class="highlighted-word">')
                    current = owner
                pieces.append(self._render_token(token_type, chunk))
            position += len(value)
        if current is not None:
            pieces.append("</span>")
        return "".join(pieces)

    def _render_token(self, token_type: _TokenType, text: str) -> str:
        escaped = html.escape(text, quote=False)
        style = self._token_style(token_type)
        if not style:
            return f"<span>{escaped}</span>"
        return f'<span style="{style}">{escaped}</span>'

    def _token_style(self, token_type: _TokenType) -> str:
        cached = self._token_styles.get(token_type)
        if cached is not None:
            return cached
        light = _style_properties(self.light_style, token_type, "")
        dark = _style_properties(self.dark_style, token_type, "--hl-dark-")
        if "--hl-dark-color" in dark:
            dark["--hl-dark"] = dark.pop("--hl-dark-color")
        for name in ("font-style", "font-weight", "text-decoration"):
            if name in light and f"--hl-dark-{name}" not in dark:
                dark[f"--hl-dark-{name}"] = "inherit"
        style = ";".join(f"{key}:{value}" for key, value in {**light, **dark}.items())
        self._token_styles[token_type] = style
        return style

    def _build_pre_style(self) -> str:
        properties = {
            "background-color": _hex(self.light_style.background_color),
            "color": _hex(self.light_style.style_for_token(Token.Text).get("color")),
            "--hl-dark-bg": _hex(self.dark_style.background_color),
            "--hl-dark": _hex(self.dark_style.style_for_token(Token.Text).get("color")),
        }
        return ";".join(f"{key}:{value}" for key, value in properties.items() if value)


def _lexer_for(lang: str) -> Lexer:
    """Return a lexer for ``lang``, falling back to plain text."""
    try:
        return get_lexer_by_name(lang, stripnl=False, ensurenl=False)
    except ClassNotFound:
        return TextLexer(stripnl=False, ensurenl=False)


def _word_ranges(text: str, words: list[str]) -> list[tuple[int, int]]:
    """Return non-overlapping ``(start, end)`` spans of ``words`` in ``text``."""
    spans: list[tuple[int, int]] = []
    for word in words:
        for match in re.finditer(re.escape(word), text):
            start, end = match.span()
            if all(end <= first or start >= last for first, last in spans):
                spans.append((start, end))
    return sorted(spans)


def _split_at(
    value: str, offset: int, ranges: list[tuple[int, int]]
) -> cabc.Iterator[tuple[int, int, str]]:
    """Yield pieces of ``value`` split at every range boundary."""
    end = offset + len(value)
    cuts = {offset, end}
    for first, last in ranges:
        cuts.update(point for point in (first, last) if offset < point < end)
    ordered = sorted(cuts)
    for start, stop in zip(ordered, ordered[1:], strict=False):
        yield start, stop, value[start - offset : stop - offset]


class HighlighterLoader:
    """Load a :class:`CodeHighlighter` once, off the calling thread.

    The first :meth:`start` submits the factory to a single-worker executor;
    later calls return the same future. A failed or timed-out load is never
    retried, so every waiter observes the same outcome.
    """

    def __init__(
        self,
        factory: cabc.Callable[[], CodeHighlighter] | None = None,
        *,
        settings: MarkupSettings | None = None,
    ) -> None:
        """Configure the loader with a factory or the settings to load from."""
        resolved = settings or MarkupSettings()
        self._factory = factory or (lambda: CodeHighlighter.from_settings(resolved))
        self._lock = threading.Lock()
        self._future: cf.Future[CodeHighlighter] | None = None

    @property
    def ready(self) -> bool:
        """Return ``True`` once a highlighter has loaded successfully."""
        future = self._future
        return (
            future is not None
            and future.done()
            and not future.cancelled()
            and future.exception() is None
        )

    def start(self) -> cf.Future[CodeHighlighter]:
        """Begin loading if nothing is in flight and return the shared future."""
        with self._lock:
            if self._future is None:
                executor = cf.ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="pubmarkup-highlighter"
                )
                self._future = executor.submit(self._load)
                executor.shutdown(wait=False)
            return self._future

    def wait(self, timeout: float | None = None) -> CodeHighlighter:
        """Block until the highlighter is loaded.

        Parameters
        ----------
        timeout : float, optional
            Seconds to wait; ``None`` waits indefinitely.

        Raises
        ------
        HighlighterInitError
            If loading failed or did not finish within ``timeout``.
        """
        future = self.start()
        try:
            return future.result(timeout=timeout)
        except cf.TimeoutError as exc:
            raise _timeout_error(timeout) from exc

    async def wait_async(self, timeout: float | None = None) -> CodeHighlighter:
        """Await the highlighter from asyncio code without blocking the loop."""
        future = self.start()
        try:
            return await asyncio.wait_for(
                asyncio.shield(asyncio.wrap_future(future)), timeout
            )
        except TimeoutError as exc:
            raise _timeout_error(timeout) from exc

    def _load(self) -> CodeHighlighter:
        try:
            highlighter = self._factory()
        except HighlighterInitError:
            logger.exception("Highlighter initialization failed")
            raise
        except Exception as exc:
            logger.exception("Highlighter initialization failed")
            msg = f"Failed to initialize the code highlighter: {exc}"
            raise HighlighterInitError(msg) from exc
        logger.debug("Highlighter ready")
        return highlighter


def _timeout_error(timeout: float | None) -> HighlighterInitError:
    msg = f"Code highlighter was not ready within {timeout} seconds."
    logger.error(msg)
    return HighlighterInitError(msg)


__all__ = [
    "CodeBlock",
    "CodeHighlighter",
    "CodeLine",
    "CodeTransformer",
    "DiffNotationTransformer",
    "FocusNotationTransformer",
    "HighlightNotationTransformer",
    "HighlighterInitError",
    "HighlighterLoader",
    "MetaHighlightTransformer",
    "MetaWordTransformer",
    "Notation",
    "WordNotationTransformer",
    "default_transformers",
    "extract_notations",
]
