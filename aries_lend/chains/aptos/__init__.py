from .client import AptosClient

__all__ = ["AptosClient"]
