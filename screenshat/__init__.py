"""Capture a web page across a range of viewport widths and turn it into video."""

__version__ = "1.0.0"
