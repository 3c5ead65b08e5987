"""Discord status board for Hell Let Loose servers."""

__version__ = "1.0.0"
