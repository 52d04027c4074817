"""Replace ``:shortcode:`` custom emojis in HTML with inline images."""

from __future__ import annotations

import html
import re
import typing as typ

from bs4 import BeautifulSoup
from bs4.element import Comment

if typ.TYPE_CHECKING:
    import collections.abc as cabc

SHORTCODE_PATTERN = re.compile(r":([A-Za-z0-9_+-]+):")
SKIPPED_PARENTS = frozenset({"code", "pre", "script", "style", "a"})
EMOJI_URL_SCHEMES = ("http://", "https://")


def emoji_tag(name: str, url: str) -> str:
    """Return the ``<img>`` markup for the emoji ``name``."""
    shortcode = html.escape(f":{name}:", quote=True)
    return (
        f'<img src="{html.escape(url, quote=True)}" alt="{shortcode}" '
        f'title="{shortcode}" class="emoji" loading="lazy">'
    )


def render_custom_emojis(html_text: str, emojis: cabc.Mapping[str, str]) -> str:
    """Swap known ``:name:`` shortcodes in ``html_text`` for emoji images.

    Parameters
    ----------
    html_text : str
        Trusted or already sanitized HTML, such as an escaped display name.
    emojis : Mapping[str, str]
        Shortcode names (with or without surrounding colons) mapped to image
        URLs. Entries whose URL is not ``http`` or ``https`` are ignored.

    Returns
    -------
    str
        HTML with shortcodes in text nodes replaced; text inside ``code``,
        ``pre``, and links is left untouched.
    """
    catalog = {
        name.strip(":"): url
        for name, url in emojis.items()
        if url.lower().startswith(EMOJI_URL_SCHEMES)
    }
    if not catalog or ":" not in html_text:
        return html_text

    soup = BeautifulSoup(html_text, "html.parser")
    for node in list(soup.find_all(string=SHORTCODE_PATTERN)):
        if isinstance(node, Comment):
            continue
        if any(parent.name in SKIPPED_PARENTS for parent in node.parents):
            continue
        replaced = SHORTCODE_PATTERN.sub(
            lambda match: (
                emoji_tag(match.group(1), catalog[match.group(1)])
                if match.group(1) in catalog
                else match.group(0)
            ),
            html.escape(str(node), quote=False),
        )
        node.replace_with(BeautifulSoup(replaced, "html.parser"))
    return str(soup)


__all__ = ["emoji_tag", "render_custom_emojis"]
