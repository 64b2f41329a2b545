"""
Vault share accounting.

Converts between vault LP shares and underlying token amounts. The exchange
rate is the vault's *unlocked* value over the LP supply: profit reported by a
strategy is released linearly, and the still-locked part must not be counted,
otherwise a depositor could capture yield that has not vested yet.

Rounding is floor in both directions, so the pool (not the depositor) absorbs
the loss:

    amount_from_shares(shares_from_deposit(x)) <= x
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

from ..state.vault import LockedProfitTracker, Vault
from .errors import MathOverflow
from .fixed_point import U64_MAX, checked_add, checked_div, checked_mul, checked_sub, mul_div, to_u64


LOCKED_PROFIT_DEGRADATION_DENOMINATOR = 1_000_000_000_000


@dataclass(frozen=True)
class VaultSnapshot:
    """Quote-local view of one pool side: the pool's LP holding in a vault."""

    lp_amount: int
    lp_supply: int
    vault: Vault


def locked_profit(tracker: LockedProfitTracker, current_time: int) -> int:
    """Profit from the last report that is still locked at ``current_time``."""
    duration = checked_sub(current_time, tracker.last_report)
    locked_fund_ratio = checked_mul(duration, tracker.locked_profit_degradation)
    if locked_fund_ratio > LOCKED_PROFIT_DEGRADATION_DENOMINATOR:
        return 0
    remaining = checked_mul(
        tracker.last_updated_locked_profit,
        LOCKED_PROFIT_DEGRADATION_DENOMINATOR - locked_fund_ratio,
    )
    return to_u64(checked_div(remaining, LOCKED_PROFIT_DEGRADATION_DENOMINATOR), "locked_profit")


def total_unlocked_value(vault: Vault, current_time: int) -> int:
    return checked_sub(vault.total_amount, locked_profit(vault.locked_profit_tracker, current_time))


def amount_from_shares(vault: Vault, current_time: int, shares: int, lp_supply: int) -> int:
    """``floor(shares * unlocked / lp_supply)``; fails on zero supply or overflow."""
    unlocked = total_unlocked_value(vault, current_time)
    return to_u64(mul_div(shares, unlocked, lp_supply), "amount_from_shares")


def shares_from_deposit(vault: Vault, current_time: int, deposit_amount: int, lp_supply: int) -> int:
    """
    Shares minted by depositing ``deposit_amount`` underlying tokens.

    The same conversion previews the shares burned by a withdrawal of that
    many tokens (the vault's unmint amount).
    """
    unlocked = total_unlocked_value(vault, current_time)
    if unlocked == 0:
        raise MathOverflow("vault has no unlocked value to price shares against")
    return to_u64(mul_div(deposit_amount, lp_supply, unlocked), "shares_from_deposit")


def simulate_deposit(vault: Vault, amount: int) -> Vault:
    """Return a copy of ``vault`` holding ``amount`` more underlying tokens."""
    return replace(vault, total_amount=checked_add(vault.total_amount, amount, bound=U64_MAX))


def amount_for_snapshot(snapshot: VaultSnapshot, current_time: int) -> int:
    return amount_from_shares(snapshot.vault, current_time, snapshot.lp_amount, snapshot.lp_supply)


def compute_pool_tokens(current_time: int, vault_a: VaultSnapshot, vault_b: VaultSnapshot) -> Tuple[int, int]:
    """Underlying token A and B held by the pool through its vault shares."""
    return amount_for_snapshot(vault_a, current_time), amount_for_snapshot(vault_b, current_time)
