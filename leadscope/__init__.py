"""Opportunity search and pipeline analytics."""

__version__ = "0.1.0"
