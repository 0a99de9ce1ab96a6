"""Shared EV charger queue service."""

__version__ = "1.0.0"
