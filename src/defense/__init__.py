"""Emoji Defense — frame-driven tower-defense simulation core."""

__version__ = "0.1.0"
