"""Terminal interface for driving serial modems with AT commands."""

__version__ = "0.1"