"""Spotify now-playing and transport control over named pipes."""

__version__ = "0.1.0"
