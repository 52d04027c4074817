"""Utility helpers shared by the pubmarkup configuration loader."""

from __future__ import annotations

import typing as typ

from .models import SettingsError


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _required_str(key: str, value: object | None, default: str) -> str:
    """Return ``value`` as a non-empty string, falling back to ``default``."""
    if value is None:
        return default
    text = _optional_str(value)
    if text is None:
        msg = f"Setting '{key}' must be a non-empty string."
        raise SettingsError(msg)
    return text


def _positive_float(key: str, value: object | None, default: float) -> float:
    """Coerce ``value`` into a positive float or raise SettingsError."""
    if value is None:
        return default
    match value:
        case bool():
            parsed = None
        case int() | float():
            parsed = float(value)
        case str() as text:
            try:
                parsed = float(text.strip())
            except ValueError:
                parsed = None
        case _:
            parsed = None
    if parsed is None or parsed <= 0:
        msg = f"Setting '{key}' must be a positive number, got {value!r}."
        raise SettingsError(msg)
    return parsed


def _string_tuple(
    key: str, value: str | list[object] | None, default: tuple[str, ...]
) -> tuple[str, ...]:
    """Normalize a string or list of strings into a tuple of lowercase names."""
    if value is None:
        return default
    if isinstance(value, str):
        items: typ.Iterable[object] = value.split()
    elif isinstance(value, list):
        items = value
    else:
        msg = f"Setting '{key}' must be a string or a list of strings."
        raise SettingsError(msg)
    normalized: list[str] = []
    for item in items:
        text = str(item).strip().lower()
        if text and text not in normalized:
            normalized.append(text)
    return tuple(normalized)


__all__ = [
    "_optional_str",
    "_positive_float",
    "_required_str",
    "_string_tuple",
]
