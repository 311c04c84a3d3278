"""Price oracle protocol: reserve price abstraction."""
from typing import Protocol


class PriceOracle(Protocol):
    """Abstract interface for protocol-native reserve prices."""

    async def get_price(self, asset_id: str) -> int: ...
