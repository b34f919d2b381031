"""AMNESIA staff commission engine."""

__version__ = "0.1.0"
