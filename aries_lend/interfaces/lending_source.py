"""Lending data source: everything the position aggregator reads."""
from typing import Protocol

from ..models import (
    EmodeConfig,
    NodeKind,
    PositionNode,
    Profile,
    ProfileData,
    ReserveState,
    TableKey,
    TableObject,
)
from .price_oracle import PriceOracle


class LendingDataSource(PriceOracle, Protocol):
    """Read-only view of protocol state, one request per call.

    Prices come from the protocol's own oracle via ``get_price``.
    """

    async def get_profile_data(self, profile: Profile) -> ProfileData: ...

    async def fetch_node(
        self, table: TableObject, key: TableKey, kind: NodeKind
    ) -> PositionNode: ...

    async def get_reserve(self, asset_id: str) -> ReserveState: ...

    async def get_emode_config(self, mode: str) -> EmodeConfig: ...

    async def get_deposited_amount(
        self, profile: Profile, asset_id: str
    ) -> tuple[int, int]: ...

    async def get_loan_amount(
        self, profile: Profile, asset_id: str
    ) -> tuple[int, int]: ...
