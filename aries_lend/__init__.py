"""Aries Markets lending account monitor for Aptos."""

__version__ = "0.1.0"
