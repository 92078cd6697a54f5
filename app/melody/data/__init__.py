"""Bundled data files (theme and feature catalog)."""
