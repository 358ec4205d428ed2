"""Shared utility helpers."""

from lambda_pack.utils.paths import is_relative_to
from lambda_pack.utils.time_utils import elapsed_ms, now_utc
from lambda_pack.utils.units import format_bytes

__all__ = [
    "is_relative_to",
    "elapsed_ms",
    "now_utc",
    "format_bytes",
]
