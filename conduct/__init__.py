"""Conduct case analytics: ingestion and temporal analytics for disciplinary case exports."""

__version__ = "1.0.0"
