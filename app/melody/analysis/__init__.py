"""Inventory analysis helpers."""

from melody.analysis.unmanaged import (
    compare_after_restore,
    find_unmanaged,
    is_match,
    normalize_name,
)

__all__ = ["compare_after_restore", "find_unmanaged", "is_match", "normalize_name"]
