"""Unified code health report: normalize, grade and rank static-analysis signals."""

__version__ = "0.1.0"
