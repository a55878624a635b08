"""LyricPad: an AI-assisted lyrics notepad with inspiration enrichment."""

__version__ = "0.1.0"
