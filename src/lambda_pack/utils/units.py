"""Byte-size formatting."""

from __future__ import annotations

_UNITS: tuple[str, ...] = ("B", "KiB", "MiB", "GiB", "TiB")


def format_bytes(size_bytes: int | None) -> str:
    """Render a byte count with binary units, e.g. `1.5 MiB`."""

    if size_bytes is None:
        return "n/a"
    value = float(size_bytes)
    for unit in _UNITS:
        if abs(value) < 1024.0 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024.0
    return f"{size_bytes} B"
