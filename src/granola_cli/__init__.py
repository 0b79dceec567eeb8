"""Command-line client for Granola meetings, transcripts and summaries."""

__version__ = "0.1.0"
