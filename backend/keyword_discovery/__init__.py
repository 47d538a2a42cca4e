"""Keyword discovery and prioritization pipeline."""

__version__ = "1.0.0"
