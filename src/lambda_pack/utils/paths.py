"""Path and filesystem helper functions."""

from __future__ import annotations

from pathlib import Path


def is_relative_to(path: Path, parent: Path) -> bool:
    """Return True when resolved `path` equals or sits below resolved `parent`."""

    resolved = path.resolve(strict=False)
    base = parent.resolve(strict=False)
    return resolved == base or base in resolved.parents
