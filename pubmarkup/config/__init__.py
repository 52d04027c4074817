"""Load and validate rendering settings for the markup pipeline.

This subpackage parses an optional YAML file (``markup:`` mapping), applies
defaults, and produces the immutable :class:`MarkupSettings` consumed by the
transformer, highlighter, and CLI. The primary entry point is
:func:`load_settings`.

Examples
--------
>>> from pubmarkup.config import MarkupSettings
>>> MarkupSettings().dark_theme
'monokai'
"""

from .loader import load_settings
from .models import MarkupSettings, SettingsError

__all__ = ["MarkupSettings", "SettingsError", "load_settings"]
