"""Utility helpers for reusable functionality."""

from .datetime import (
    end_of_day,
    ensure_utc,
    ensure_utc_naive,
    now_in_utc,
    parse_iso_day,
    start_of_day,
)

__all__ = [
    "end_of_day",
    "ensure_utc",
    "ensure_utc_naive",
    "now_in_utc",
    "parse_iso_day",
    "start_of_day",
]
