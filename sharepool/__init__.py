"""Sharepool - tiered equity and quarterly profit-distribution engine."""

__version__ = "1.0.0"
