"""Lending protocol adapters."""
