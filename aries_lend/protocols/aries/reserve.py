"""Reserve accounting: exchange rates, interest rates and limits. No I/O.

Every function is a pure function of a ``ReserveState`` snapshot. Raw
18-decimal fields are brought to token units with ``scale_down`` (ceiling)
and subtractions saturate at zero.
"""
from __future__ import annotations

from ...fixed_point import (
    DECIMAL_SCALE,
    mul_rate,
    ratio,
    saturating_sub,
    scale_down,
)
from ...models import FarmType, ReserveState, Reward

DAYS_PER_YEAR = 365
FEE_DENOMINATOR = 1_000_000  # hundredths of a basis point


def total_assets(reserve: ReserveState) -> int:
    """Underlying backing the reserve: lent + idle - protocol reserve."""
    return saturating_sub(
        scale_down(reserve.total_borrowed) + reserve.total_cash_available,
        scale_down(reserve.reserve_amount),
    )


def exchange_rates(reserve: ReserveState) -> tuple[float, float]:
    """Return ``(lp_rate, share_rate)``.

    ``lp_rate`` converts LP shares to underlying; until the pool has LP
    supply it is the initial exchange rate truncated to thousandths.
    ``share_rate`` converts borrow shares to underlying and is 0 while
    nothing is borrowed.
    """
    if reserve.total_lp_supply == 0:
        lp_rate = (reserve.initial_exchange_rate * 1000 // DECIMAL_SCALE) / 1000.0
    else:
        lp_rate = total_assets(reserve) / reserve.total_lp_supply

    total_shares = scale_down(reserve.total_borrowed_share)
    if total_shares == 0:
        share_rate = 0.0
    else:
        share_rate = scale_down(reserve.total_borrowed) / total_shares

    return lp_rate, share_rate


def utilization(reserve: ReserveState) -> float:
    """Fraction of total assets currently lent out."""
    return ratio(scale_down(reserve.total_borrowed), total_assets(reserve))


def lp_to_amount(reserve: ReserveState, lp_amount: int) -> int:
    lp_rate, _ = exchange_rates(reserve)
    return mul_rate(lp_amount, lp_rate)


def borrow_share_to_amount(reserve: ReserveState, shares: int) -> int:
    """Convert a raw (18-decimal) borrow share to underlying token units."""
    _, share_rate = exchange_rates(reserve)
    return mul_rate(shares, share_rate) // DECIMAL_SCALE


def borrow_apr(reserve: ReserveState) -> float:
    """Borrow APR from the two-segment kinked curve.

    Below the optimal utilization the rate climbs linearly from
    ``min_borrow_rate`` to ``optimal_borrow_rate``; above it, from
    ``optimal_borrow_rate`` to ``max_borrow_rate``.
    """
    cfg = reserve.interest_rate_config
    min_rate = cfg.min_borrow_rate / 100.0
    optimal_rate = cfg.optimal_borrow_rate / 100.0
    max_rate = cfg.max_borrow_rate / 100.0
    optimal_util = cfg.optimal_utilization / 100.0

    u = utilization(reserve)

    if optimal_util == 1.0 or u < optimal_util:
        return u / optimal_util * (optimal_rate - min_rate) + min_rate

    return (u - optimal_util) / (1.0 - optimal_util) * (
        max_rate - optimal_rate
    ) + optimal_rate


def deposit_apr(reserve: ReserveState) -> float:
    """Borrower interest times utilization times the non-reserved fraction."""
    return (
        borrow_apr(reserve)
        * utilization(reserve)
        * (100.0 - reserve.reserve_config.reserve_ratio)
        / 100.0
    )


def max_borrowable(reserve: ReserveState) -> int:
    """Largest new borrow the reserve allows right now."""
    borrowed = scale_down(reserve.total_borrowed)
    under_limit = saturating_sub(reserve.reserve_config.borrow_limit, borrowed)
    liquid = saturating_sub(
        reserve.total_cash_available, scale_down(reserve.reserve_amount)
    )
    return min(under_limit, liquid)


def borrow_amount_without_fee(reserve: ReserveState, amount: int) -> int:
    fee = amount * reserve.reserve_config.borrow_fee_hundredth_bips // FEE_DENOMINATOR
    return saturating_sub(amount, fee)


def reward_apr(
    reserve: ReserveState,
    reward: Reward,
    reserve_price: int,
    reward_price: int,
) -> float:
    """Annualized farming yield of ``reward`` relative to the farmed reserve."""
    daily_reward = min(reward.reward_per_day, reward.remaining_reward)

    lp_rate, share_rate = exchange_rates(reserve)
    if reward.farm_type is FarmType.BORROW:
        farmed_amount = int(reward.total_shares * share_rate)
    else:
        farmed_amount = int(reward.total_shares * lp_rate)

    price_factor = ratio(reward_price, reserve_price)
    amount_factor = ratio(daily_reward, farmed_amount)
    return price_factor * amount_factor * DAYS_PER_YEAR
