"""Type conversion utilities."""

from __future__ import annotations

from typing import Any

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def to_int(raw: Any, default: int = 0) -> int:
    """Convert an indexer-supplied number to int, never raising.

    Handles:
        - int → int (bool excluded)
        - float → truncated int
        - "123" / " 123 " → 123
        - "1,234" → 1234
        - "12.0" → 12
        - None / "" / garbage → ``default``
    """
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw == raw else default  # NaN
    if isinstance(raw, str):
        txt = raw.strip().replace(",", "")
        if not txt:
            return default
        try:
            return int(txt)
        except ValueError:
            pass
        try:
            return int(float(txt))
        except (ValueError, OverflowError):
            return default
    return default


def format_size(size_bytes: int) -> str:
    """Human-readable size from a raw byte count ("1.4 GB")."""
    if size_bytes <= 0:
        return "0 B"
    value = float(size_bytes)
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{size_bytes} B"
