"""Ingestion, normalization and approval core for Hong Kong sports discovery."""

__version__ = "0.1.0"
