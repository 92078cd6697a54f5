"""Command-line interface for melody."""
