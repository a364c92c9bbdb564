"""Pinco - backend for the embeddable website annotation widget."""

__version__ = "1.0.0"
