"""Delivery zone resolution service."""

__version__ = "0.1.0"
