"""Aries Markets adapter — reads profiles, reserves and positions on Aptos."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from ...config import ProtocolConfig
from ...errors import NotFoundError
from ...fixed_point import scale_down
from ...interfaces.chain import ChainClient
from ...models import (
    AccountSummary,
    EmodeConfig,
    FarmType,
    NodeKind,
    PositionNode,
    Profile,
    ProfileData,
    ReserveMetrics,
    ReserveState,
    Reward,
    TableKey,
    TableObject,
)
from . import parser
from . import reserve as accounting
from .aggregator import ProfilePositionAggregator

logger = logging.getLogger(__name__)

TYPE_INFO = "0x1::type_info::TypeInfo"


class AriesAdapter:
    """Fetch and parse Aries lending state through an Aptos chain client.

    Every read is a single chain request; nothing is cached, so each
    aggregation works against the latest state.
    """

    def __init__(self, chain_client: ChainClient, config: ProtocolConfig) -> None:
        self._client = chain_client
        self._config = config
        self._contract = config.contract_address
        self._aggregator = ProfilePositionAggregator(
            self, max_nodes=config.max_list_nodes
        )

    @property
    def protocol_name(self) -> str:
        return "aries"

    @property
    def aggregator(self) -> ProfilePositionAggregator:
        return self._aggregator

    def _fn(self, name: str) -> str:
        return f"{self._contract}::{name}"

    async def _view(
        self, name: str, type_arguments: list[str], arguments: list[Any]
    ) -> list[Any]:
        return await self._client.view(self._fn(name), type_arguments, arguments)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def get_profile(
        self, wallet_address: str, profile_address: str | None = None
    ) -> Profile:
        """Resolve a wallet's profile (the first one unless an address is given)."""
        resource = await self._client.get_account_resource(
            wallet_address, self._fn("profile::Profiles")
        )
        profiles = parser.parse_profiles(resource, wallet_address)
        logger.debug("Wallet %s has %d profiles", wallet_address, len(profiles))

        if profile_address is not None:
            matches = [p for p in profiles if p.profile_address == profile_address]
        else:
            matches = profiles
        if not matches:
            raise NotFoundError(
                f"Profile {profile_address or '(any)'} not found for {wallet_address}"
            )

        profile = matches[0]
        emode = await self._get_profile_emode(profile)
        return replace(profile, emode=emode)

    async def _get_profile_emode(self, profile: Profile) -> str | None:
        result = await self._view(
            "emode_category::profile_emode", [], [profile.profile_address]
        )
        if not result:
            return None
        return parser.parse_optional_str(result[0], "profile_emode")

    async def get_profile_data(self, profile: Profile) -> ProfileData:
        resource = await self._client.get_account_resource(
            profile.profile_address, self._fn("profile::Profile")
        )
        return parser.parse_profile_data(resource)

    async def fetch_node(
        self, table: TableObject, key: TableKey, kind: NodeKind
    ) -> PositionNode:
        """Fetch one deposit or loan entry of a profile's iterable table."""
        value_type = (
            f"{self._fn('iterable_table::IterableValue')}"
            f"<{TYPE_INFO}, {self._fn('profile::' + kind.value)}>"
        )
        item = await self._client.get_table_item(
            table.handle, TYPE_INFO, value_type, key.to_payload()
        )
        if kind is NodeKind.DEPOSIT:
            return parser.parse_deposit_node(item)
        return parser.parse_loan_node(item)

    async def get_deposited_amount(
        self, profile: Profile, asset_id: str
    ) -> tuple[int, int]:
        """Return ``(collateral_amount, underlying_amount)``."""
        result = await self._view(
            "profile::profile_deposit",
            [asset_id],
            [profile.wallet_address, profile.name],
        )
        return parser.parse_amount_pair(result, "profile_deposit")

    async def get_loan_amount(
        self, profile: Profile, asset_id: str
    ) -> tuple[int, int]:
        """Return ``(borrowed_share, borrowed_amount)`` in token units."""
        result = await self._view(
            "profile::profile_loan",
            [asset_id],
            [profile.wallet_address, profile.name],
        )
        share, amount = parser.parse_amount_pair(result, "profile_loan")
        return scale_down(share), scale_down(amount)

    # ------------------------------------------------------------------
    # Reserves and prices
    # ------------------------------------------------------------------

    async def get_reserve(self, asset_id: str) -> ReserveState:
        result = await self._view("reserve::reserve_state", [asset_id], [])
        data = parser.first_result(result, "reserve_state")
        emode = await self._get_reserve_emode(asset_id)
        return parser.parse_reserve_state(data, asset_id, emode)

    async def _get_reserve_emode(self, asset_id: str) -> str | None:
        result = await self._view("emode_category::reserve_emode", [asset_id], [])
        if not result:
            return None
        return parser.parse_optional_str(result[0], "reserve_emode")

    async def get_emode_config(self, mode: str) -> EmodeConfig:
        result = await self._view("emode_category::emode_config", [], [mode])
        return parser.parse_emode_config(parser.first_result(result, "emode_config"))

    async def get_price(self, asset_id: str) -> int:
        result = await self._view("oracle::get_reserve_price", [asset_id], [])
        return parser.parse_price(result)

    # ------------------------------------------------------------------
    # Farming rewards
    # ------------------------------------------------------------------

    async def get_rewards(self, asset_id: str, farm_type: FarmType) -> list[Reward]:
        result = await self._view(
            "reserve::reserve_farm",
            [asset_id, self._fn(f"reserve_config::{farm_type.value}")],
            [],
        )
        return parser.parse_rewards(result, farm_type)

    async def _reward_apr(self, reserve: ReserveState, farm_type: FarmType) -> float:
        reserve_price = await self.get_price(reserve.token_address)
        rewards = await self.get_rewards(reserve.token_address, farm_type)
        if not rewards:
            return 0.0

        # Only the first reward of a farm is priced.
        reward = rewards[0]
        reward_price = await self.get_price(reward.token_address)
        return accounting.reward_apr(reserve, reward, reserve_price, reward_price)

    async def get_borrow_reward_apr(self, reserve: ReserveState) -> float:
        return await self._reward_apr(reserve, FarmType.BORROW)

    async def get_deposit_reward_apr(self, reserve: ReserveState) -> float:
        return await self._reward_apr(reserve, FarmType.DEPOSIT)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def describe_reserve(self, asset_id: str) -> ReserveMetrics:
        """Snapshot a reserve and derive its rates and borrow limit."""
        reserve = await self.get_reserve(asset_id)
        lp_rate, share_rate = accounting.exchange_rates(reserve)
        return ReserveMetrics(
            token_address=asset_id,
            total_assets=accounting.total_assets(reserve),
            utilization=accounting.utilization(reserve),
            lp_rate=lp_rate,
            share_rate=share_rate,
            borrow_apr=accounting.borrow_apr(reserve),
            deposit_apr=accounting.deposit_apr(reserve),
            borrow_reward_apr=await self.get_borrow_reward_apr(reserve),
            deposit_reward_apr=await self.get_deposit_reward_apr(reserve),
            max_borrowable=accounting.max_borrowable(reserve),
            emode=reserve.emode,
        )

    async def fetch_account_summary(
        self, wallet_address: str, profile_address: str | None = None
    ) -> AccountSummary:
        """Aggregate a profile's borrow power and borrowed value."""
        logger.info("Checking Aries profile for wallet: %s", wallet_address)

        profile = await self.get_profile(wallet_address, profile_address)
        summary = await self._aggregator.summarize(profile)

        logger.info("=" * 60)
        logger.info("ACCOUNT SUMMARY")
        logger.info("=" * 60)
        logger.info("  Profile:            %s (%s)", profile.name, profile.profile_address)
        logger.info("  E-mode:             %s", profile.emode or "none")
        logger.info("  Borrow Power:       %d", summary.total_borrow_power)
        logger.info("  Borrowed Value:     %d", summary.total_borrowed_value)
        logger.info("  Remaining Power:    %d", summary.remaining_power)
        logger.info("  Usage:              %.2f%%", summary.usage)
        logger.info("=" * 60)

        return summary
