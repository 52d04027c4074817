"""Common literal values used across pubmarkup.

These constants keep separators, markup fragments, and environment keys
centralized so the transformer, sanitizer, and tests can import the same values
without drifting. Intended for internal use within the pubmarkup package.

Examples
--------
>>> from pubmarkup import _constants
>>> _constants.SLUG_SEPARATOR
'--'
>>> "h1" in _constants.HEADING_TAGS
True
"""

import re

SLUG_SEPARATOR = "--"
SLUG_FALLBACK = "section"
CONFIG_ENV_VAR = "PUBMARKUP_CONFIG"
HEADING_TAGS = frozenset(f"h{level}" for level in range(1, 7))
SVG_PREAMBLE_PATTERN = re.compile(
    r"<\?xml[^>]*\?>\s*|<!DOCTYPE\s+svg[^>]*>\s*", re.IGNORECASE
)
