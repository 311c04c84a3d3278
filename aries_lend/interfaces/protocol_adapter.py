"""Protocol adapter — per-protocol account and reserve reporting."""
from typing import Protocol

from ..models import AccountSummary, ReserveMetrics


class ProtocolAdapter(Protocol):
    """Abstract interface for reading positions from a lending protocol."""

    @property
    def protocol_name(self) -> str: ...

    async def fetch_account_summary(
        self, wallet_address: str, profile_address: str | None = None
    ) -> AccountSummary: ...

    async def describe_reserve(self, asset_id: str) -> ReserveMetrics: ...
