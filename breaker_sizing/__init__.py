"""Breaker sizing calculation pipeline (NEC / IEC)."""

__version__ = "1.0.0"
