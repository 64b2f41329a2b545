"""
Swap quote orchestration (functional core).

This module wires the fee resolver, vault share accounting, depeg oracle and
swap kernels into a single pure quote:
- Validate the pool and the requested input mint (fail-closed)
- Price the pool's reserves as underlying tokens held through vault shares
- Carve the protocol fee out of the trade fee
- Simulate the vault deposit of the input on a transient vault copy
- Swap on the pool curve, then round the output through the out vault's shares

Nothing passed in is mutated. Every failure is a ``QuoteError`` naming the
step that failed.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional, Tuple

from ..state.accounts import Clock, Mint, PubKey, TokenAccount
from ..state.pools import ActivationType, Pool, TradeDirection
from ..state.vault import Vault
from .config import BPS_DENOM, DEFAULT_QUOTE_CONFIG, QuoteConfig
from .curve_dispatch import swap_for_curve
from .depeg import update_base_virtual_price
from .errors import (
    InsufficientLiquidity,
    InvalidActivationType,
    InvalidInputMint,
    MathOverflow,
    MathUnderflow,
    PoolDisabled,
    QuoteError,
    SwapNotYetActive,
)
from .fees import effective_fees, protocol_trading_fee, trading_fee
from .fixed_point import U64_MAX, checked_add, checked_div, checked_mul, checked_sub, to_u64
from .vault_shares import VaultSnapshot, amount_for_snapshot, amount_from_shares, shares_from_deposit, simulate_deposit


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteData:
    """Everything a quote reads: pool, both vaults, their LP and token accounts, the clock."""

    pool: Pool
    vault_a: Vault
    vault_b: Vault
    pool_vault_a_lp_token: TokenAccount
    pool_vault_b_lp_token: TokenAccount
    vault_a_lp_mint: Mint
    vault_b_lp_mint: Mint
    vault_a_token: TokenAccount
    vault_b_token: TokenAccount
    clock: Clock
    # Stake pool account bytes keyed by address. Only for depeg pools.
    stake_data: Mapping[PubKey, bytes] = field(default_factory=dict)


@dataclass(frozen=True)
class QuoteResult:
    out_amount: int
    # Trade fee (after the protocol cut), in the input token.
    fee: int


@dataclass(frozen=True)
class _Side:
    vault: Vault
    lp_token: TokenAccount
    lp_mint: Mint
    token_account: TokenAccount
    total_amount: int


@contextmanager
def _step(context: str) -> Iterator[None]:
    """Re-raise arithmetic failures with the name of the step that failed."""
    try:
        yield
    except (MathOverflow, MathUnderflow) as exc:
        raise type(exc)(f"{context}: {exc}") from exc


def current_activation_point(pool: Pool, clock: Clock) -> int:
    try:
        activation_type = ActivationType(pool.bootstrapping.activation_type)
    except ValueError as exc:
        raise InvalidActivationType(
            f"unknown activation type: {pool.bootstrapping.activation_type}"
        ) from exc
    if activation_type == ActivationType.SLOT:
        return clock.slot
    with _step("Fail to read clock timestamp"):
        return to_u64(clock.unix_timestamp, "unix_timestamp")


def _validate(pool: Pool, clock: Clock, in_token_mint: PubKey) -> int:
    """Fail-closed pool checks; returns the current activation point."""
    # A disabled pool is rejected before its activation fields are read.
    if not pool.enabled:
        raise PoolDisabled("Pool disabled")
    current_point = current_activation_point(pool, clock)
    if current_point < pool.bootstrapping.activation_point:
        raise SwapNotYetActive(
            f"Swap is disabled until point {pool.bootstrapping.activation_point} (now {current_point})"
        )
    if in_token_mint not in (pool.token_a_mint, pool.token_b_mint):
        raise InvalidInputMint("In token mint not matches with pool token mints")
    return current_point


def _snapshot(vault: Vault, lp_token: TokenAccount, lp_mint: Mint) -> VaultSnapshot:
    return VaultSnapshot(lp_amount=lp_token.amount, lp_supply=lp_mint.supply, vault=vault)


def compute_quote(
    in_token_mint: PubKey,
    in_amount: int,
    quote_data: QuoteData,
    config: Optional[QuoteConfig] = None,
) -> QuoteResult:
    """
    Quote an exact-in swap of ``in_amount`` of ``in_token_mint``.

    The result matches on-chain settlement: the output is what the out vault
    actually pays after its own share rounding, and the fee is the LP trade fee
    net of the protocol cut.
    """
    cfg = config or DEFAULT_QUOTE_CONFIG
    pool = quote_data.pool
    clock = quote_data.clock

    current_point = _validate(pool, clock, in_token_mint)
    to_u64(in_amount, "in_amount")

    with _step("Fail to read clock timestamp"):
        current_time = to_u64(clock.unix_timestamp, "unix_timestamp")

    curve = update_base_virtual_price(pool.curve_type, current_time, quote_data.stake_data, pool.stake, cfg)

    with _step("Fail to get token a amount"):
        token_a_amount = amount_for_snapshot(
            _snapshot(quote_data.vault_a, quote_data.pool_vault_a_lp_token, quote_data.vault_a_lp_mint),
            current_time,
        )
    with _step("Fail to get token b amount"):
        token_b_amount = amount_for_snapshot(
            _snapshot(quote_data.vault_b, quote_data.pool_vault_b_lp_token, quote_data.vault_b_lp_mint),
            current_time,
        )

    side_a = _Side(
        quote_data.vault_a,
        quote_data.pool_vault_a_lp_token,
        quote_data.vault_a_lp_mint,
        quote_data.vault_a_token,
        token_a_amount,
    )
    side_b = _Side(
        quote_data.vault_b,
        quote_data.pool_vault_b_lp_token,
        quote_data.vault_b_lp_mint,
        quote_data.vault_b_token,
        token_b_amount,
    )
    if in_token_mint == pool.token_a_mint:
        trade_direction, in_side, out_side = TradeDirection.A_TO_B, side_a, side_b
    else:
        trade_direction, in_side, out_side = TradeDirection.B_TO_A, side_b, side_a

    fees = effective_fees(pool, current_point)
    with _step("Fail to calculate trading fee"):
        trade_fee = trading_fee(fees, in_amount)
    with _step("Fail to calculate protocol trading fee"):
        protocol_fee = protocol_trading_fee(fees, trade_fee)
    # Protocol fee is a cut from trade fee
    with _step("Fail to calculate trade fee"):
        trade_fee = checked_sub(trade_fee, protocol_fee)
    with _step("Fail to calculate in_amount_after_protocol_fee"):
        in_amount_after_protocol_fee = checked_sub(in_amount, protocol_fee, bound=U64_MAX)

    # Deposit the input into a transient copy of the in vault.
    with _step("Fail to get in_vault_lp"):
        in_lp = shares_from_deposit(
            in_side.vault, current_time, in_amount_after_protocol_fee, in_side.lp_mint.supply
        )
    with _step("Fail to add in_vault.total_amount"):
        in_vault_after = simulate_deposit(in_side.vault, in_amount_after_protocol_fee)
    with _step("Fail to get new in_vault_lp"):
        in_lp_amount_after = checked_add(in_lp, in_side.lp_token.amount, bound=U64_MAX)
    with _step("Fail to get new in_vault_lp_mint"):
        in_lp_supply_after = checked_add(in_side.lp_mint.supply, in_lp, bound=U64_MAX)
    with _step("Fail to get after_in_token_total_amount"):
        after_in_token_total_amount = amount_from_shares(
            in_vault_after, current_time, in_lp_amount_after, in_lp_supply_after
        )
    with _step("Fail to get actual_in_amount"):
        actual_in_amount = checked_sub(after_in_token_total_amount, in_side.total_amount)
    with _step("Fail to calculate in_amount_after_fee"):
        actual_in_amount_after_fee = checked_sub(actual_in_amount, trade_fee)

    logger.debug(
        "quote %s: in=%d protocol_fee=%d trade_fee=%d credited=%d reserves=(%d, %d)",
        trade_direction.value,
        in_amount,
        protocol_fee,
        trade_fee,
        actual_in_amount,
        in_side.total_amount,
        out_side.total_amount,
    )

    with _step("Fail to get swap result"):
        swap_result = swap_for_curve(
            curve,
            source_amount=actual_in_amount_after_fee,
            swap_source_amount=in_side.total_amount,
            swap_destination_amount=out_side.total_amount,
            trade_direction=trade_direction,
            config=cfg,
        )
    with _step("Fail to get destination amount"):
        destination_amount_swapped = to_u64(swap_result.destination_amount_swapped, "destination_amount_swapped")

    # Round the output through the out vault's shares, as settlement does.
    with _step("Fail to get out_vault_lp"):
        out_vault_lp = shares_from_deposit(
            out_side.vault, current_time, destination_amount_swapped, out_side.lp_mint.supply
        )
    with _step("Fail to get out_amount"):
        out_amount = amount_from_shares(out_side.vault, current_time, out_vault_lp, out_side.lp_mint.supply)

    if out_amount >= out_side.token_account.amount:
        raise InsufficientLiquidity(
            f"Out amount > vault reserve: {out_amount} >= {out_side.token_account.amount}"
        )

    return QuoteResult(out_amount=out_amount, fee=to_u64(trade_fee, "fee"))


def max_swap_out_amount(quote_data: QuoteData, out_token_mint: PubKey) -> int:
    """
    Largest output the pool can pay in ``out_token_mint``: the pool's underlying
    total of that token, capped by the vault's liquid token account balance.
    """
    pool = quote_data.pool
    with _step("Fail to read clock timestamp"):
        current_time = to_u64(quote_data.clock.unix_timestamp, "unix_timestamp")
    if out_token_mint == pool.token_a_mint:
        snapshot = _snapshot(quote_data.vault_a, quote_data.pool_vault_a_lp_token, quote_data.vault_a_lp_mint)
        reserve = quote_data.vault_a_token.amount
    elif out_token_mint == pool.token_b_mint:
        snapshot = _snapshot(quote_data.vault_b, quote_data.pool_vault_b_lp_token, quote_data.vault_b_lp_mint)
        reserve = quote_data.vault_b_token.amount
    else:
        raise InvalidInputMint("Out token mint not matches with pool token mints")
    with _step("Fail to get out token amount"):
        total_amount = amount_for_snapshot(snapshot, current_time)
    return min(total_amount, reserve)


def min_amount_with_slippage(amount: int, slippage_bps: int) -> int:
    """``floor(amount * (10_000 - slippage_bps) / 10_000)``."""
    if not (0 <= slippage_bps <= BPS_DENOM):
        raise ValueError(f"slippage_bps must be in [0, {BPS_DENOM}]: {slippage_bps}")
    return checked_div(checked_mul(amount, BPS_DENOM - slippage_bps), BPS_DENOM)


def compute_quote_with_slippage(
    in_token_mint: PubKey,
    in_amount: int,
    quote_data: QuoteData,
    config: Optional[QuoteConfig] = None,
) -> Tuple[QuoteResult, int]:
    """Quote plus the minimum acceptable output under ``config.slippage_bps``."""
    cfg = config or DEFAULT_QUOTE_CONFIG
    result = compute_quote(in_token_mint, in_amount, quote_data, cfg)
    return result, min_amount_with_slippage(result.out_amount, cfg.slippage_bps)


__all__ = [
    "QuoteData",
    "QuoteResult",
    "QuoteError",
    "compute_quote",
    "compute_quote_with_slippage",
    "current_activation_point",
    "max_swap_out_amount",
    "min_amount_with_slippage",
]
