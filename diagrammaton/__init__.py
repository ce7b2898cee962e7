"""Diagrammaton: natural-language to diagram generation backend."""

__version__ = "0.1.0"
