"""Wealth Flow: portfolio dashboard backend with a cached market-data gateway."""

__version__ = "0.1.0"
