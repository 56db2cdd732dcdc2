"""brb — run a command and notify when it completes."""

__version__ = "0.1.0"
