"""Retention-based file cleanup with a verified recycle bin."""

__version__ = "1.0.0"
