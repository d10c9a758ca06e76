"""Find, search and summarise Claude Code session transcripts."""

__version__ = "0.9.0"

__all__ = ["rerun", "search", "session", "stats", "timeline", "viewport", "wrap"]