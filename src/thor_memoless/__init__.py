"""Memoless deposit registration and amount encoding for THORChain."""

__version__ = "0.1.0"
