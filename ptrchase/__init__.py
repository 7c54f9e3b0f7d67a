"""Pointer-chasing memory benchmark: chain building, timed walks and reports."""

__version__ = "0.1.0"

__all__ = ["__version__"]