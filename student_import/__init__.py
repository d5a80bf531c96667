"""Bulk student import: CSV validation, duplicate resolution and grouped commits."""

__version__ = "0.1.0"
