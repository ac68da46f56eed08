"""Capability map engine: effective views projected from capability events."""

__version__ = "0.1.0"
