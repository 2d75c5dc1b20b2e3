"""Timestamp-based sync between a local directory and a Google Drive folder."""

__version__ = "1.0.0"
