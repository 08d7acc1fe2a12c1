"""Decode iMessage attributedBody archives into text and attributed runs."""

__version__ = "1.0.0"
