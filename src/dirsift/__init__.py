"""dirsift - disk usage analysis and cleanup recommendations for macOS."""

__version__ = "0.1.0"
