"""Text format parsers used by collectors."""

from melody.parsers.vdf import VdfParseError, find_key, load, loads

__all__ = ["VdfParseError", "find_key", "load", "loads"]
