"""Signed JSON-over-HTTP exchange with the Riskified service."""

__version__ = "0.1.0"
