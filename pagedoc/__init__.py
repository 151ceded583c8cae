"""Deterministic, structured document extraction."""

__version__ = "0.2.0"
