"""Efficiency-mode resolution of a reserve's risk parameters."""
from __future__ import annotations

from typing import Awaitable, Callable

from ...models import EmodeConfig

EmodeLookup = Callable[[str], Awaitable[EmodeConfig]]


def emode_matches(profile_emode: str | None, reserve_emode: str | None) -> bool:
    """True only when both tags are the same non-empty mode.

    Two absent tags are not a match.
    """
    return bool(profile_emode) and profile_emode == reserve_emode


async def effective_ltv(
    profile_emode: str | None,
    reserve_emode: str | None,
    reserve_default_ltv: int,
    lookup: EmodeLookup,
) -> int:
    """Loan-to-value percent to apply for a (profile, reserve) pair."""
    if not emode_matches(profile_emode, reserve_emode):
        return reserve_default_ltv
    config = await lookup(profile_emode)  # type: ignore[arg-type]
    return config.loan_to_value


async def effective_liquidation_threshold(
    profile_emode: str | None,
    reserve_emode: str | None,
    reserve_default_threshold: int,
    lookup: EmodeLookup,
) -> int:
    """Liquidation threshold percent to apply for a (profile, reserve) pair."""
    if not emode_matches(profile_emode, reserve_emode):
        return reserve_default_threshold
    config = await lookup(profile_emode)  # type: ignore[arg-type]
    return config.liquidation_threshold
