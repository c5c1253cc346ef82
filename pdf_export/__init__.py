"""Headless-browser PDF export for generated HTML documents."""

__version__ = "1.0.0"
