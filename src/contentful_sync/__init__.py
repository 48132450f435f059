"""Markdown to Contentful content synchronisation."""

__version__ = "0.1.0"
