"""Allowlist sanitization profiles for rendered markup.

Every HTML string that leaves the pipeline passes through one of the three
profiles defined here:

``FULL_PROFILE``
    Display HTML: text formatting, links, images, tables, MathML, inline SVG,
    and the CSS variables emitted by the code highlighter.
``EXCERPT_PROFILE``
    Identical to the full profile without ``<a>``, so excerpts keep the
    visible link text but never a clickable link.
``TEXT_PROFILE``
    No elements at all; the output is escaped plain text.

Sanitization runs in two passes. Elements whose content is never meant to be
shown (``script``, ``style``, embedded documents, form controls) are removed
together with their subtree using BeautifulSoup, then bleach strips every
remaining element, attribute, URL scheme, and CSS declaration that is not
allowlisted while keeping the text of stripped elements.

Example
-------
>>> from pubmarkup.sanitizer import sanitize_html
>>> sanitize_html('<p onclick="x()">hi<script>alert(1)</script></p>')
'<p>hi</p>'
"""

from __future__ import annotations

import dataclasses as dc
import re
import threading
import types
import typing as typ

import tinycss2
from bleach.css_sanitizer import CSSSanitizer
from bleach.sanitizer import Cleaner
from bs4 import BeautifulSoup

if typ.TYPE_CHECKING:
    import collections.abc as cabc

DANGEROUS_TAGS = frozenset(
    {
        "applet",
        "embed",
        "frame",
        "frameset",
        "iframe",
        "noembed",
        "noframes",
        "noscript",
        "object",
        "script",
        "select",
        "style",
        "template",
        "textarea",
    }
)
DANGEROUS_TAG_PATTERN = re.compile(
    r"<\s*(?:" + "|".join(sorted(DANGEROUS_TAGS)) + r")\b", re.IGNORECASE
)
UNSAFE_CSS_VALUE_PATTERN = re.compile(
    r"url\s*\(|expression\s*\(|image-set\s*\(|javascript\s*:|vbscript\s*:|\\",
    re.IGNORECASE,
)
SAFE_PROTOCOLS = frozenset({"http", "https", "mailto", "tel"})

_LOCALE = ("lang", "translate")
_ALIGN = ("align", "valign")
_SVG_PAINT = (
    "fill",
    "fill-opacity",
    "stroke",
    "stroke-width",
    "stroke-opacity",
    "stroke-dasharray",
)

FULL_ATTRIBUTES: dict[str, tuple[str, ...]] = {
    "a": (*_LOCALE, "target", "href", "hreflang", "title", "rel", "class"),
    "abbr": (*_LOCALE, "title"),
    "address": _LOCALE,
    "area": (*_LOCALE, "shape", "coords", "href", "alt"),
    "article": _LOCALE,
    "aside": _LOCALE,
    "audio": (
        *_LOCALE,
        "autoplay",
        "controls",
        "crossorigin",
        "loop",
        "muted",
        "preload",
        "src",
    ),
    "b": _LOCALE,
    "bdi": (*_LOCALE, "dir"),
    "bdo": (*_LOCALE, "dir"),
    "big": _LOCALE,
    "blockquote": (*_LOCALE, "cite"),
    "br": _LOCALE,
    "caption": _LOCALE,
    "center": _LOCALE,
    "cite": _LOCALE,
    "code": (*_LOCALE, "class"),
    "col": (*_LOCALE, *_ALIGN, "span", "width"),
    "colgroup": (*_LOCALE, *_ALIGN, "span", "width"),
    "dd": _LOCALE,
    "del": (*_LOCALE, "datetime"),
    "details": (*_LOCALE, "open"),
    "dfn": _LOCALE,
    "div": (*_LOCALE, "class", "style"),
    "dl": _LOCALE,
    "dt": _LOCALE,
    "em": _LOCALE,
    "figcaption": _LOCALE,
    "figure": _LOCALE,
    "font": (*_LOCALE, "color", "size", "face"),
    "footer": _LOCALE,
    "h1": (*_LOCALE, "id"),
    "h2": (*_LOCALE, "id"),
    "h3": (*_LOCALE, "id"),
    "h4": (*_LOCALE, "id"),
    "h5": (*_LOCALE, "id"),
    "h6": (*_LOCALE, "id"),
    "header": _LOCALE,
    "hr": ("class",),
    "i": _LOCALE,
    "img": (*_LOCALE, "src", "alt", "title", "width", "height", "loading"),
    "ins": (*_LOCALE, "datetime"),
    "kbd": _LOCALE,
    "li": (*_LOCALE, "id"),
    "mark": _LOCALE,
    "nav": _LOCALE,
    "ol": (*_LOCALE, "start"),
    "p": (*_LOCALE, "class"),
    "picture": _LOCALE,
    "pre": (*_LOCALE, "class", "style"),
    "q": (*_LOCALE, "cite"),
    "rp": _LOCALE,
    "rt": _LOCALE,
    "ruby": _LOCALE,
    "s": _LOCALE,
    "samp": _LOCALE,
    "section": (*_LOCALE, "class"),
    "small": _LOCALE,
    "source": (
        *_LOCALE,
        "src",
        "srcset",
        "sizes",
        "media",
        "type",
        "width",
        "height",
    ),
    "span": (*_LOCALE, "aria-hidden", "class", "style", "title"),
    "sub": _LOCALE,
    "summary": _LOCALE,
    "sup": (*_LOCALE, "class", "id"),
    "strong": _LOCALE,
    "strike": _LOCALE,
    "table": (*_LOCALE, "width", "border", *_ALIGN),
    "tbody": (*_LOCALE, *_ALIGN),
    "td": (*_LOCALE, "width", "rowspan", "colspan", *_ALIGN),
    "tfoot": (*_LOCALE, *_ALIGN),
    "th": (*_LOCALE, "width", "rowspan", "colspan", *_ALIGN),
    "thead": (*_LOCALE, *_ALIGN),
    "time": (*_LOCALE, "datetime"),
    "tr": (*_LOCALE, "rowspan", *_ALIGN),
    "tt": _LOCALE,
    "u": _LOCALE,
    "ul": _LOCALE,
    "var": _LOCALE,
    "video": (
        *_LOCALE,
        "autoplay",
        "controls",
        "crossorigin",
        "loop",
        "muted",
        "playsinline",
        "poster",
        "preload",
        "src",
        "height",
        "width",
    ),
    # MathML
    "math": ("class", "display"),
    "maction": ("actiontype", "selection"),
    "annotation": ("encoding",),
    "annotation-xml": ("encoding",),
    "menclose": ("notation",),
    "merror": ("class",),
    "mfenced": ("open", "close", "separators"),
    "mfrac": ("linethickness",),
    "mi": ("mathvariant",),
    "mmultiscripts": ("subscriptshift", "superscriptshift"),
    "mn": ("mathvariant",),
    "mo": ("fence", "form", "largeop", "lspace", "movablelimits", "rspace", "stretchy"),
    "mover": ("accent",),
    "mpadded": ("height", "depth", "width", "lspace", "voffset"),
    "mphantom": ("class",),
    "mprescripts": (),
    "mroot": ("displaystyle",),
    "mrow": ("displaystyle",),
    "ms": ("lquote", "rquote"),
    "semantics": ("class",),
    "mspace": ("depth", "height", "width"),
    "msqrt": ("displaystyle",),
    "mstyle": ("displaystyle", "mathcolor", "mathbackground", "scriptlevel"),
    "msub": ("subscriptshift",),
    "msup": ("superscriptshift",),
    "msubsup": ("subscriptshift", "superscriptshift"),
    "mtable": (
        "align",
        "columnalign",
        "columnspacing",
        "columnlines",
        "rowalign",
        "rowspacing",
        "rowlines",
    ),
    "mtd": ("columnalign", "rowalign"),
    "mtext": ("mathvariant",),
    "mtr": ("columnalign", "rowalign"),
    "munder": ("accentunder",),
    "munderover": ("accent", "accentunder"),
    # SVG
    "svg": ("class", "viewBox", "version", "width", "height", "aria-hidden"),
    "path": ("d", *_SVG_PAINT),
    "g": ("id", "class", *_SVG_PAINT, "transform"),
    "polygon": ("points", *_SVG_PAINT),
    "polyline": ("points", *_SVG_PAINT),
    "ellipse": ("cx", "cy", "rx", "ry", *_SVG_PAINT),
    "linearGradient": ("id", "gradientUnits", "x1", "y1", "x2", "y2"),
    "radialGradient": ("id", "gradientUnits", "cx", "cy", "r", "fx", "fy"),
    "stop": ("offset", "stop-color", "stop-opacity", "style"),
    "text": (
        "x",
        "y",
        "fill",
        "fill-opacity",
        "font-size",
        "font-family",
        "font-weight",
        "font-style",
        "text-anchor",
    ),
    "defs": (),
    "title": (),
}

FULL_CSS_PROPERTIES = frozenset(
    {
        "color",
        "background-color",
        "font-style",
        "font-weight",
        "text-decoration",
        # code highlighter dark theme
        "--hl-dark",
        "--hl-dark-bg",
        "--hl-dark-font-style",
        "--hl-dark-font-weight",
        "--hl-dark-text-decoration",
        # SVG gradients
        "stop-color",
        "stop-opacity",
    }
)


@dc.dataclass(frozen=True, slots=True)
class SanitizationProfile:
    """Immutable allowlist describing one sanitization policy.

    Attributes
    ----------
    name : str
        Human-readable profile name (``"full"``, ``"excerpt"``, ``"text"``).
    attributes : Mapping[str, frozenset[str]]
        Allowed element names mapped to their allowed attribute names.
    css_properties : frozenset[str]
        CSS properties kept inside ``style`` attributes.
    protocols : frozenset[str]
        URL schemes allowed in URL-valued attributes.
    """

    name: str
    attributes: cabc.Mapping[str, frozenset[str]]
    css_properties: frozenset[str] = frozenset()
    protocols: frozenset[str] = SAFE_PROTOCOLS

    @property
    def tags(self) -> frozenset[str]:
        """Return the allowed element names."""
        return frozenset(self.attributes)

    def without(self, *tags: str) -> SanitizationProfile:
        """Return a copy of this profile that no longer allows ``tags``."""
        excluded = set(tags)
        return dc.replace(
            self,
            attributes=_freeze_attributes(
                {
                    tag: attrs
                    for tag, attrs in self.attributes.items()
                    if tag not in excluded
                }
            ),
        )


def _freeze_attributes(
    attributes: cabc.Mapping[str, cabc.Iterable[str]],
) -> cabc.Mapping[str, frozenset[str]]:
    """Return a read-only mapping of frozensets for ``attributes``."""
    return types.MappingProxyType(
        {tag: frozenset(attrs) for tag, attrs in attributes.items()}
    )


FULL_PROFILE = SanitizationProfile(
    name="full",
    attributes=_freeze_attributes(FULL_ATTRIBUTES),
    css_properties=FULL_CSS_PROPERTIES,
)
EXCERPT_PROFILE = dc.replace(FULL_PROFILE.without("a"), name="excerpt")
TEXT_PROFILE = SanitizationProfile(name="text", attributes=_freeze_attributes({}))


class ValueCheckingCSSSanitizer(CSSSanitizer):
    """CSS sanitizer that also rejects declarations with active values.

    bleach filters declarations by property name only; a permitted property
    can still carry ``url(...)`` or ``expression(...)`` values. Those
    declarations are dropped here before serialization.
    """

    def sanitize_css(self, style: str) -> str:
        """Return ``style`` with disallowed properties and values removed."""
        parsed = tinycss2.parse_declaration_list(
            style, skip_comments=True, skip_whitespace=True
        )
        kept: list[str] = []
        for node in parsed:
            if node.type != "declaration":
                continue
            if node.lower_name not in self.allowed_css_properties:
                continue
            value = tinycss2.serialize(node.value).strip()
            if not value or UNSAFE_CSS_VALUE_PATTERN.search(value):
                continue
            suffix = " !important" if node.important else ""
            kept.append(f"{node.lower_name}:{value}{suffix}")
        return ";".join(kept)


class HtmlSanitizer:
    """Apply a :class:`SanitizationProfile` to HTML strings.

    bleach cleaners keep parser state between calls, so one cleaner is built
    lazily per thread; the profile itself is shared read-only.
    """

    def __init__(self, profile: SanitizationProfile) -> None:
        """Bind the sanitizer to ``profile``."""
        self.profile = profile
        self._local = threading.local()

    def clean(self, html: str) -> str:
        """Return ``html`` reduced to the profile's allowlist.

        Parameters
        ----------
        html : str
            Untrusted HTML fragment.

        Returns
        -------
        str
            Sanitized fragment. Never raises for malformed markup; anything
            that cannot be interpreted safely is dropped or escaped.
        """
        if not html:
            return ""
        return self._cleaner().clean(_drop_dangerous_subtrees(html))

    def _cleaner(self) -> Cleaner:
        """Return the cleaner for the current thread, building it on first use."""
        cleaner = getattr(self._local, "cleaner", None)
        if cleaner is None:
            cleaner = self._build_cleaner()
            self._local.cleaner = cleaner
        return cleaner

    def _build_cleaner(self) -> Cleaner:
        profile = self.profile
        css_sanitizer = None
        if profile.css_properties:
            css_sanitizer = ValueCheckingCSSSanitizer(
                allowed_css_properties=profile.css_properties,
                allowed_svg_properties=frozenset(),
            )
        # the HTML parser may report SVG names either camel-cased or lowered
        attributes: dict[str, set[str]] = {}
        for tag, attrs in profile.attributes.items():
            names = {*attrs, *(attr.lower() for attr in attrs)}
            attributes.setdefault(tag, set()).update(names)
            attributes.setdefault(tag.lower(), set()).update(names)
        return Cleaner(
            tags=frozenset(attributes),
            attributes={tag: sorted(attrs) for tag, attrs in attributes.items()},
            protocols=profile.protocols,
            strip=True,
            strip_comments=True,
            css_sanitizer=css_sanitizer,
        )


def _drop_dangerous_subtrees(html: str) -> str:
    """Remove script-like elements together with everything inside them."""
    if not DANGEROUS_TAG_PATTERN.search(html):
        return html
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.find_all(sorted(DANGEROUS_TAGS)):
        element.decompose()
    return str(soup)


html_sanitizer = HtmlSanitizer(FULL_PROFILE)
excerpt_sanitizer = HtmlSanitizer(EXCERPT_PROFILE)
text_sanitizer = HtmlSanitizer(TEXT_PROFILE)


def sanitize_html(html: str) -> str:
    """Sanitize ``html`` with the full display profile.

    Exposed for collaborators that receive HTML from elsewhere (for example,
    remote post content) and must store it under the same policy as locally
    rendered Markdown.
    """
    return html_sanitizer.clean(html)


__all__ = [
    "DANGEROUS_TAGS",
    "EXCERPT_PROFILE",
    "FULL_CSS_PROPERTIES",
    "FULL_PROFILE",
    "TEXT_PROFILE",
    "HtmlSanitizer",
    "SanitizationProfile",
    "ValueCheckingCSSSanitizer",
    "excerpt_sanitizer",
    "html_sanitizer",
    "sanitize_html",
    "text_sanitizer",
]
