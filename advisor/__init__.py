"""Advisor planning engine: retirement income and tax projections."""

__version__ = "0.1.0"
