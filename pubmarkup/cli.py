"""Cyclopts CLI entrypoint for rendering and sanitizing markup from the shell.

The ``pubmarkup`` console script renders a Markdown file into the sanitized
JSON artifacts produced by :func:`pubmarkup.markup.render_markup`, prints the
heading slug a document would assign, and sanitizes arbitrary HTML with one
of the three profiles. Options can also be supplied through ``PUBMARKUP_*``
environment variables.

Examples
--------
Render a post to JSON:

>>> from pubmarkup.cli import app
>>> app.run(
...     ["render", "post.md", "--document-id", "post-1", "--output", "post.json"]
... )  # doctest: +SKIP

Print a heading slug:

>>> app.run(["slug", "Hello World", "--document-id", "post-1"])  # doctest: +SKIP
post-1--hello-world
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
import msgspec
from cyclopts import App, Parameter

from .config import load_settings
from .markup import MarkupPipeline
from .sanitizer import excerpt_sanitizer, html_sanitizer, text_sanitizer
from .slugs import slugify_heading

STDIN_SOURCE = "-"
SANITIZERS = {
    "full": html_sanitizer,
    "excerpt": excerpt_sanitizer,
    "text": text_sanitizer,
}

app = App(name="pubmarkup", config=cyclopts.config.Env("PUBMARKUP_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _read_source(source: str) -> str:
    """Return the contents of ``source``, reading stdin for ``-``."""
    if source == STDIN_SOURCE:
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


@app.command(help="Render a Markdown document into sanitized JSON artifacts.")
def render(
    source: typ.Annotated[
        str, Parameter(help="Markdown file to render, or '-' for stdin")
    ],
    *,
    document_id: typ.Annotated[
        str, Parameter(help="Identifier used to namespace heading anchors")
    ],
    output: typ.Annotated[
        Path | None, Parameter(help="Write JSON here instead of stdout")
    ] = None,
    config: typ.Annotated[
        Path | None,
        Parameter(help="Path to a settings YAML file", env_var="PUBMARKUP_CONFIG"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log debug output, including raw HTML")
    ] = False,
) -> None:
    """Render ``source`` and emit the result as JSON.

    Parameters
    ----------
    source : str
        Path of the Markdown file; ``-`` reads standard input.
    document_id : str
        Stable document identifier used for anchors and footnotes.
    output : Path or None, optional
        Destination JSON file. When omitted the JSON is printed.
    config : Path or None, optional
        Settings file (overridable via ``PUBMARKUP_CONFIG``).
    verbose : bool, optional
        Enable debug logging.

    Raises
    ------
    HighlighterInitError
        If the code highlighter cannot be loaded.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    settings = load_settings(config)
    pipeline = MarkupPipeline(settings).start()
    rendered = pipeline.render(document_id, _read_source(source))
    payload = msgspec.json.encode(rendered)
    if output is None:
        print(payload.decode("utf-8"))
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(payload)
    print(f"wrote {_format_path(output)}")


@app.command(help="Print the anchor a heading would receive in a document.")
def slug(
    text: typ.Annotated[str, Parameter(help="Heading text")],
    *,
    document_id: typ.Annotated[str, Parameter(help="Document identifier")],
    config: typ.Annotated[
        Path | None,
        Parameter(help="Path to a settings YAML file", env_var="PUBMARKUP_CONFIG"),
    ] = None,
) -> None:
    """Print the document-scoped slug for ``text``."""
    settings = load_settings(config)
    print(slugify_heading(text, document_id, separator=settings.slug_separator))


@app.command(help="Sanitize an HTML file with one of the allowlist profiles.")
def sanitize(
    source: typ.Annotated[str, Parameter(help="HTML file, or '-' for stdin")],
    *,
    profile: typ.Annotated[
        typ.Literal["full", "excerpt", "text"],
        Parameter(help="Sanitization profile"),
    ] = "full",
) -> None:
    """Print ``source`` sanitized with ``profile``."""
    print(SANITIZERS[profile].clean(_read_source(source)))


def main() -> None:
    """Invoke the Cyclopts application behind the ``pubmarkup`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
