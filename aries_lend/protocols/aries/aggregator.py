"""Profile position aggregation over on-chain iterable tables.

A profile's deposits and loans are stored as forward-linked lists inside
iterable tables: each node carries the position amount and the key of the
next node. Aggregation walks a list from its head, converting each node to
a value with the node's reserve snapshot and oracle price, and sums the
results. Walks are strictly sequential because each key comes from the
previous node.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from ...errors import MalformedDataError
from ...fixed_point import saturating_sub
from ...interfaces.lending_source import LendingDataSource
from ...models import (
    AccountSummary,
    NodeKind,
    PositionNode,
    Profile,
    ReserveState,
    TableObject,
)
from . import reserve as accounting
from .emode import effective_ltv

logger = logging.getLogger(__name__)

# Subtracted from every available-borrow figure until per-asset decimals
# are looked up.
BORROW_SAFETY_MARGIN = 10**5

NodeValue = Callable[[PositionNode, ReserveState, int], Awaitable[int]]


class ProfilePositionAggregator:
    """Borrow power and borrowed value of a profile.

    Args:
        source: Protocol state reader.
        max_nodes: Optional upper bound on list length. Exceeding it raises
            ``MalformedDataError``; well-formed lists are unaffected.
    """

    def __init__(
        self, source: LendingDataSource, max_nodes: int | None = None
    ) -> None:
        self._source = source
        self._max_nodes = max_nodes

    async def _fold(
        self, table: TableObject, kind: NodeKind, node_value: NodeValue
    ) -> int:
        """Sum ``node_value`` over every node of ``table``."""
        if table.head is None:
            return 0

        total = 0
        visited = 0
        key = table.head
        while key is not None:
            if self._max_nodes is not None and visited >= self._max_nodes:
                raise MalformedDataError(
                    f"{kind.value} list of table {table.handle} exceeds "
                    f"{self._max_nodes} nodes"
                )
            node = await self._source.fetch_node(table, key, kind)
            reserve = await self._source.get_reserve(key.decode())
            price = await self._source.get_price(reserve.token_address)

            contribution = await node_value(node, reserve, price)
            logger.debug(
                "%s %s: amount=%d price=%d value=%d",
                kind.value, reserve.token_address, node.amount, price, contribution,
            )
            total += contribution
            visited += 1
            key = node.next

        return total

    async def total_borrow_power(self, profile: Profile) -> int:
        """Sum of collateral value weighted by each reserve's effective LTV."""
        profile_data = await self._source.get_profile_data(profile)

        async def deposit_power(
            node: PositionNode, reserve: ReserveState, price: int
        ) -> int:
            ltv = await effective_ltv(
                profile.emode,
                reserve.emode,
                reserve.reserve_config.loan_to_value,
                self._source.get_emode_config,
            )
            return accounting.lp_to_amount(reserve, node.amount) * price * ltv // 100

        return await self._fold(
            profile_data.deposited_reserves, NodeKind.DEPOSIT, deposit_power
        )

    async def total_borrowed_value(self, profile: Profile) -> int:
        """Raw (not risk-weighted) value owed across all loans."""
        profile_data = await self._source.get_profile_data(profile)

        async def loan_value(
            node: PositionNode, reserve: ReserveState, price: int
        ) -> int:
            return accounting.borrow_share_to_amount(reserve, node.amount) * price

        return await self._fold(
            profile_data.borrowed_reserves, NodeKind.LOAN, loan_value
        )

    async def available_borrow_amount(
        self, profile: Profile, reserve: ReserveState
    ) -> tuple[int, int]:
        """Return ``(avail_borrow_amount, borrowed_amount)`` for ``reserve``."""
        _, borrowed_amount = await self._source.get_loan_amount(
            profile, reserve.token_address
        )
        price = await self._source.get_price(reserve.token_address)
        total_power = await self.total_borrow_power(profile)
        total_borrowed = await self.total_borrowed_value(profile)
        logger.debug(
            "borrow power=%d borrowed value=%d", total_power, total_borrowed
        )

        if price == 0:
            raise MalformedDataError(
                f"oracle price of {reserve.token_address} is zero"
            )

        capacity = (
            saturating_sub(total_power, total_borrowed)
            * reserve.reserve_config.borrow_factor
            // 100
            // price
        )
        avail_borrow = saturating_sub(capacity, BORROW_SAFETY_MARGIN)
        avail_borrow = min(avail_borrow, accounting.max_borrowable(reserve))

        return (
            accounting.borrow_amount_without_fee(reserve, avail_borrow),
            borrowed_amount,
        )

    async def available_withdraw_amount(
        self, profile: Profile, reserve: ReserveState
    ) -> tuple[int, int]:
        """Return ``(avail_withdraw_amount, deposited_amount)`` for ``reserve``.

        Headroom is the LTV-weighted borrow power minus borrowed value; no
        liquidation-threshold buffer is applied.
        """
        _, deposited_amount = await self._source.get_deposited_amount(
            profile, reserve.token_address
        )

        total_borrowed = await self.total_borrowed_value(profile)
        if total_borrowed == 0:
            return deposited_amount, deposited_amount

        total_power = await self.total_borrow_power(profile)
        avail_value = saturating_sub(total_power, total_borrowed)

        price = await self._source.get_price(reserve.token_address)
        if price == 0:
            raise MalformedDataError(
                f"oracle price of {reserve.token_address} is zero"
            )
        avail_withdraw = min(avail_value // price, deposited_amount)

        return avail_withdraw, deposited_amount

    async def summarize(self, profile: Profile) -> AccountSummary:
        total_power = await self.total_borrow_power(profile)
        total_borrowed = await self.total_borrowed_value(profile)
        return AccountSummary(
            profile_name=profile.name,
            profile_address=profile.profile_address,
            total_borrow_power=total_power,
            total_borrowed_value=total_borrowed,
            emode=profile.emode,
        )
