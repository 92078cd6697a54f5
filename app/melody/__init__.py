"""Windows Melody Recovery - declarative backup and restore for Windows settings."""

__version__ = "0.4.0"
