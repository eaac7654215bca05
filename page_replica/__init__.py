"""Capture rendered web pages as self-contained offline replicas."""

__version__ = "0.1.0"
