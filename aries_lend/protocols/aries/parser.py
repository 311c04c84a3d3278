"""Pure parsing functions for Aries on-chain payloads. No I/O.

Payloads are the JSON bodies returned by the Aptos REST API: account
resources, view-function results and table items. u64/u128 values arrive as
decimal strings. Missing fields raise ``MalformedDataError`` and unparsable
numbers raise ``ParseError``; nothing defaults silently.
"""
from __future__ import annotations

from typing import Any

from ...errors import MalformedDataError
from ...fixed_point import parse_uint
from ...models import (
    EmodeConfig,
    FarmType,
    InterestRateConfig,
    PositionNode,
    Profile,
    ProfileData,
    ReserveConfig,
    ReserveState,
    Reward,
    TableKey,
    TableObject,
)

PROFILE_NAME_PREFIX = "profile"


def require(data: Any, field: str) -> Any:
    """Return ``data[field]`` or raise ``MalformedDataError``."""
    if not isinstance(data, dict) or field not in data:
        raise MalformedDataError(f"field {field} not found")
    return data[field]


def require_str(data: Any, field: str) -> str:
    value = require(data, field)
    if not isinstance(value, str):
        raise MalformedDataError(f"field {field} is not a string: {value!r}")
    return value


def uint_field(data: Any, field: str) -> int:
    return parse_uint(require(data, field), field)


def amount_value(data: Any, field: str) -> int:
    """Parse a ``{"val": "<u128>"}`` wrapper."""
    return parse_uint(require(require(data, field), "val"), f"{field}.val")


def first_result(result: Any, what: str) -> Any:
    """First element of a view-function result list."""
    if not isinstance(result, list) or not result:
        raise MalformedDataError(f"empty view result for {what}")
    return result[0]


def parse_option(data: Any, field: str) -> list[Any]:
    """Unwrap a Move ``Option<T>`` (``{"vec": [..]}``) into a 0/1 item list."""
    if not isinstance(data, dict) or "vec" not in data:
        raise MalformedDataError(f"field {field}.vec not found")
    vec = data["vec"]
    if not isinstance(vec, list):
        raise MalformedDataError(f"field {field}.vec is not a list")
    return vec


def parse_optional_str(data: Any, field: str) -> str | None:
    items = parse_option(data, field)
    if not items:
        return None
    if not isinstance(items[0], str):
        raise MalformedDataError(f"field {field} is not a string option")
    return items[0]


# ---------------------------------------------------------------------------
# Reserves
# ---------------------------------------------------------------------------


def parse_reserve_config(data: dict[str, Any]) -> ReserveConfig:
    return ReserveConfig(
        loan_to_value=uint_field(data, "loan_to_value"),
        liquidation_threshold=uint_field(data, "liquidation_threshold"),
        borrow_factor=uint_field(data, "borrow_factor"),
        reserve_ratio=uint_field(data, "reserve_ratio"),
        borrow_fee_hundredth_bips=uint_field(data, "borrow_fee_hundredth_bips"),
        borrow_limit=uint_field(data, "borrow_limit"),
        deposit_limit=uint_field(data, "deposit_limit"),
        withdraw_fee_hundredth_bips=uint_field(data, "withdraw_fee_hundredth_bips"),
        flash_loan_fee_hundredth_bips=uint_field(
            data, "flash_loan_fee_hundredth_bips"
        ),
        liquidation_fee_hundredth_bips=uint_field(
            data, "liquidation_fee_hundredth_bips"
        ),
        liquidation_bonus_bips=uint_field(data, "liquidation_bonus_bips"),
        allow_collateral=bool(data.get("allow_collateral", True)),
        allow_redeem=bool(data.get("allow_redeem", True)),
    )


def parse_interest_rate_config(data: dict[str, Any]) -> InterestRateConfig:
    return InterestRateConfig(
        min_borrow_rate=uint_field(data, "min_borrow_rate"),
        optimal_borrow_rate=uint_field(data, "optimal_borrow_rate"),
        max_borrow_rate=uint_field(data, "max_borrow_rate"),
        optimal_utilization=uint_field(data, "optimal_utilization"),
    )


def parse_reserve_state(
    data: dict[str, Any], token_address: str, emode: str | None = None
) -> ReserveState:
    """Parse a ``reserve::reserve_state`` view result.

    ``token_address`` and ``emode`` are not part of the payload and are
    supplied by the caller.
    """
    return ReserveState(
        token_address=token_address,
        initial_exchange_rate=amount_value(data, "initial_exchange_rate"),
        total_borrowed=amount_value(data, "total_borrowed"),
        total_borrowed_share=amount_value(data, "total_borrowed_share"),
        reserve_amount=amount_value(data, "reserve_amount"),
        total_cash_available=uint_field(data, "total_cash_available"),
        total_lp_supply=uint_field(data, "total_lp_supply"),
        reserve_config=parse_reserve_config(require(data, "reserve_config")),
        interest_rate_config=parse_interest_rate_config(
            require(data, "interest_rate_config")
        ),
        emode=emode,
    )


def parse_emode_config(data: dict[str, Any]) -> EmodeConfig:
    return EmodeConfig(
        loan_to_value=uint_field(data, "loan_to_value"),
        liquidation_threshold=uint_field(data, "liquidation_threshold"),
        liquidation_bonus_bips=uint_field(data, "liquidation_bonus_bips"),
    )


def parse_price(result: list[Any]) -> int:
    """Parse an ``oracle::get_reserve_price`` result (``[{"val": ..}]``)."""
    price = require(first_result(result, "get_reserve_price"), "val")
    return parse_uint(price, "price.val")


# ---------------------------------------------------------------------------
# Profiles and iterable tables
# ---------------------------------------------------------------------------


def parse_table_key(data: Any) -> TableKey:
    return TableKey(
        account_address=require_str(data, "account_address"),
        module_name=require_str(data, "module_name"),
        struct_name=require_str(data, "struct_name"),
    )


def _optional_key(data: Any, field: str) -> TableKey | None:
    items = parse_option(require(data, field), field)
    return parse_table_key(items[0]) if items else None


def parse_table_data(data: dict[str, Any]) -> TableObject:
    """Parse an ``IterableTable`` resource field.

    Shape: ``{"inner": {"inner": {"handle"}, "length"}, "head": Option,
    "tail": Option}``.
    """
    inner = require(data, "inner")
    handle = require_str(require(inner, "inner"), "handle")
    return TableObject(
        handle=handle,
        length=uint_field(inner, "length"),
        head=_optional_key(data, "head"),
        tail=_optional_key(data, "tail"),
    )


def parse_profile_data(resource: dict[str, Any]) -> ProfileData:
    """Parse the ``profile::Profile`` resource of a profile account."""
    data = resource.get("data", resource)
    return ProfileData(
        deposited_reserves=parse_table_data(require(data, "deposited_reserves")),
        borrowed_reserves=parse_table_data(require(data, "borrowed_reserves")),
    )


def parse_profiles(resource: dict[str, Any], wallet_address: str) -> list[Profile]:
    """List the profiles registered in a wallet's ``profile::Profiles``."""
    data = resource.get("data", resource)
    entries = require(require(data, "profile_signers"), "data")
    if not isinstance(entries, list):
        raise MalformedDataError("field profile_signers.data is not a list")

    profiles: list[Profile] = []
    for entry in entries:
        key = require_str(entry, "key")
        name = key[len(PROFILE_NAME_PREFIX):] if key.startswith(PROFILE_NAME_PREFIX) else key
        profiles.append(
            Profile(
                wallet_address=wallet_address,
                name=name,
                profile_address=require_str(require(entry, "value"), "account"),
            )
        )
    return profiles


def _parse_node(item: dict[str, Any], amount: int) -> PositionNode:
    return PositionNode(amount=amount, next=_optional_key(item, "next"))


def parse_deposit_node(item: dict[str, Any]) -> PositionNode:
    """``IterableValue<TypeInfo, Deposit>`` → collateral amount + next key."""
    return _parse_node(item, uint_field(require(item, "val"), "collateral_amount"))


def parse_loan_node(item: dict[str, Any]) -> PositionNode:
    """``IterableValue<TypeInfo, Loan>`` → raw borrowed share + next key."""
    return _parse_node(item, amount_value(require(item, "val"), "borrowed_share"))


def parse_amount_pair(result: list[Any], what: str) -> tuple[int, int]:
    """Parse a two-value view result such as ``profile_deposit``."""
    if not isinstance(result, list) or len(result) < 2:
        raise MalformedDataError(f"expected two values from {what}")
    return parse_uint(result[0], f"{what}[0]"), parse_uint(result[1], f"{what}[1]")


# ---------------------------------------------------------------------------
# Farming rewards
# ---------------------------------------------------------------------------


def parse_rewards(result: list[Any], farm_type: FarmType) -> list[Reward]:
    """Parse a ``reserve::reserve_farm`` result.

    Each farm entry holds parallel ``reward_types`` and ``rewards`` lists;
    the first reward of an entry is used, tagged with its decoded reward
    token, the farm type and the entry's total ``share``.
    """
    items = parse_option(first_result(result, "reserve_farm"), "reserve_farm")

    rewards: list[Reward] = []
    for item in items:
        reward_types = require(item, "reward_types")
        payloads = require(item, "rewards")
        if not reward_types or not payloads:
            continue
        payload = payloads[0]
        rewards.append(
            Reward(
                remaining_reward=uint_field(payload, "remaining_reward"),
                reward_per_day=uint_field(payload, "reward_per_day"),
                reward_per_share_decimal=uint_field(
                    payload, "reward_per_share_decimal"
                ),
                token_address=parse_table_key(reward_types[0]).decode(),
                farm_type=farm_type,
                total_shares=uint_field(item, "share"),
            )
        )
    return rewards
