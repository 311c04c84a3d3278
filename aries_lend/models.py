"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ParseError


@dataclass(frozen=True)
class ReserveConfig:
    """Risk parameters of a reserve. Percents are integers in [0, 100]."""

    loan_to_value: int
    liquidation_threshold: int
    borrow_factor: int
    reserve_ratio: int
    borrow_fee_hundredth_bips: int
    borrow_limit: int
    deposit_limit: int = 0
    withdraw_fee_hundredth_bips: int = 0
    flash_loan_fee_hundredth_bips: int = 0
    liquidation_fee_hundredth_bips: int = 0
    liquidation_bonus_bips: int = 0
    allow_collateral: bool = True
    allow_redeem: bool = True


@dataclass(frozen=True)
class InterestRateConfig:
    """Kinked borrow curve. All values are percents."""

    min_borrow_rate: int
    optimal_borrow_rate: int
    max_borrow_rate: int
    optimal_utilization: int


@dataclass(frozen=True)
class ReserveState:
    """Point-in-time snapshot of one reserve.

    ``initial_exchange_rate``, ``total_borrowed``, ``total_borrowed_share``
    and ``reserve_amount`` carry 18 implied decimals; ``total_cash_available``
    and ``total_lp_supply`` are plain token units.
    """

    token_address: str
    initial_exchange_rate: int
    total_borrowed: int
    total_borrowed_share: int
    reserve_amount: int
    total_cash_available: int
    total_lp_supply: int
    reserve_config: ReserveConfig
    interest_rate_config: InterestRateConfig
    emode: str | None = None


@dataclass(frozen=True)
class EmodeConfig:
    """Efficiency-mode override of a reserve's risk parameters."""

    loan_to_value: int
    liquidation_threshold: int
    liquidation_bonus_bips: int


@dataclass(frozen=True)
class Profile:
    """Named sub-account of a wallet."""

    wallet_address: str
    name: str
    profile_address: str
    emode: str | None = None


@dataclass(frozen=True)
class TableKey:
    """``0x1::type_info::TypeInfo`` key of an iterable table.

    On chain the module and struct names are hex-encoded UTF-8.
    """

    account_address: str
    module_name: str
    struct_name: str

    def __str__(self) -> str:
        return f"{self.account_address}::{self.module_name}::{self.struct_name}"

    def decode(self) -> str:
        """Return the human-readable ``addr::module::Struct`` type name."""
        module = _hex_to_str(self.module_name, "module_name")
        struct = _hex_to_str(self.struct_name, "struct_name")
        return f"{self.account_address}::{module}::{struct}"

    @classmethod
    def from_type_name(cls, type_name: str) -> TableKey:
        """Build the on-chain (hex-encoded) key for ``addr::module::Struct``."""
        parts = type_name.split("::", 2)
        if len(parts) != 3:
            raise ParseError(f"not a fully-qualified type name: {type_name!r}")
        address, module, struct = parts
        return cls(
            account_address=address,
            module_name="0x" + module.encode("utf-8").hex(),
            struct_name="0x" + struct.encode("utf-8").hex(),
        )

    def to_payload(self) -> dict[str, str]:
        return {
            "account_address": self.account_address,
            "module_name": self.module_name,
            "struct_name": self.struct_name,
        }


def _hex_to_str(value: str, field: str) -> str:
    """Decode a ``0x``-prefixed hex name; plain names pass through."""
    if not value.startswith("0x"):
        return value
    try:
        return bytes.fromhex(value[2:]).decode("utf-8")
    except (ValueError, UnicodeDecodeError) as e:
        raise ParseError(f"field {field} is not hex-encoded UTF-8: {value!r}") from e


@dataclass(frozen=True)
class TableObject:
    """Head/tail handle of an on-chain iterable table."""

    handle: str
    length: int
    head: TableKey | None = None
    tail: TableKey | None = None


@dataclass(frozen=True)
class ProfileData:
    deposited_reserves: TableObject
    borrowed_reserves: TableObject


@dataclass(frozen=True)
class PositionNode:
    """One entry of a profile's position list.

    ``amount`` is the collateral (LP) amount for deposits and the raw
    18-decimal borrowed share for loans.
    """

    amount: int
    next: TableKey | None = None


class NodeKind(str, Enum):
    DEPOSIT = "Deposit"
    LOAN = "Loan"


class FarmType(str, Enum):
    BORROW = "BorrowFarming"
    DEPOSIT = "DepositFarming"


@dataclass(frozen=True)
class Reward:
    """Farming incentive of a reserve.

    ``token_address``, ``farm_type`` and ``total_shares`` come from the
    surrounding farm entry, not the reward payload itself.
    """

    remaining_reward: int
    reward_per_day: int
    reward_per_share_decimal: int
    token_address: str = ""
    farm_type: FarmType = FarmType.BORROW
    total_shares: int = 0


@dataclass(frozen=True)
class ReserveMetrics:
    """Derived rates and limits of one reserve."""

    token_address: str
    total_assets: int
    utilization: float
    lp_rate: float
    share_rate: float
    borrow_apr: float
    deposit_apr: float
    borrow_reward_apr: float
    deposit_reward_apr: float
    max_borrowable: int
    emode: str | None = None


@dataclass(frozen=True)
class AccountSummary:
    """Aggregated borrowing position of a profile."""

    profile_name: str
    profile_address: str
    total_borrow_power: int
    total_borrowed_value: int
    emode: str | None = None
    wallet_label: str = ""

    @property
    def remaining_power(self) -> int:
        if self.total_borrow_power > self.total_borrowed_value:
            return self.total_borrow_power - self.total_borrowed_value
        return 0

    @property
    def usage(self) -> float:
        """Borrowed value as a percentage of borrow power."""
        if self.total_borrow_power <= 0:
            return 0.0
        return self.total_borrowed_value / self.total_borrow_power * 100
