"""
Virtual price oracle for depeg (staking-derivative) stable pools.

The virtual price is read straight from the stake pool's own accounting
rather than a price feed:

    deposit_price  = total_lamports * PRECISION / pool_token_supply
    withdraw_price = deposit_price after the SOL withdrawal fee
    virtual_price  = (3 * deposit_price + withdraw_price) / 4

The pool stores the last computed price with the time it was computed. While
that cache is fresh it is used as-is; once it expires a fresh price is
mandatory and failing to produce one fails the quote.

Only SPL stake pool accounts are decoded. Marinade and Lido pools quote from
their cached price while it is fresh, and fail with ``DepegDecodeFailure``
once it expires.

The functional core only decodes bytes it is handed; fetching the stake pool
account is the shell's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from ..state.pools import DEPEG_PRECISION, ConstantProductCurve, CurveType, DepegType, StableCurve
from .config import DEFAULT_QUOTE_CONFIG, QuoteConfig
from .errors import DepegDecodeFailure, QuoteError
from .fixed_point import U64_MAX, checked_add, checked_div, checked_mul, checked_sub, to_u64


logger = logging.getLogger(__name__)

PUBKEY_LEN = 32


@dataclass(frozen=True)
class Fee:
    denominator: int
    numerator: int


@dataclass(frozen=True)
class StakePoolState:
    """The fields of an SPL stake pool account that price its pool token."""

    total_lamports: int
    pool_token_supply: int
    sol_withdrawal_fee: Fee


class _BorshReader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._offset = 0

    def take(self, n: int) -> bytes:
        end = self._offset + n
        if end > len(self._data):
            raise DepegDecodeFailure(
                f"stake pool account truncated: need {end} bytes, have {len(self._data)}"
            )
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u64(self) -> int:
        return int.from_bytes(self.take(8), "little")

    def skip_pubkey(self) -> None:
        self.take(PUBKEY_LEN)

    def skip_option_pubkey(self) -> None:
        tag = self.u8()
        if tag == 1:
            self.skip_pubkey()
        elif tag != 0:
            raise DepegDecodeFailure(f"invalid Option tag: {tag}")

    def fee(self) -> Fee:
        denominator = self.u64()
        numerator = self.u64()
        return Fee(denominator=denominator, numerator=numerator)

    def skip_future_epoch_fee(self) -> None:
        # FutureEpoch<Fee>: None | One(Fee) | Two(Fee)
        tag = self.u8()
        if tag in (1, 2):
            self.fee()
        elif tag != 0:
            raise DepegDecodeFailure(f"invalid FutureEpoch tag: {tag}")


def decode_stake_pool(data: bytes) -> StakePoolState:
    """Decode an SPL stake pool account (borsh). Trailing bytes are ignored."""
    r = _BorshReader(data)
    r.u8()  # account_type
    for _ in range(3):  # manager, staker, stake_deposit_authority
        r.skip_pubkey()
    r.u8()  # stake_withdraw_bump_seed
    for _ in range(5):  # validator_list, reserve_stake, pool_mint, manager_fee_account, token_program_id
        r.skip_pubkey()
    total_lamports = r.u64()
    pool_token_supply = r.u64()
    r.u64()  # last_update_epoch
    r.take(8 + 8 + PUBKEY_LEN)  # lockup
    r.fee()  # epoch_fee
    r.skip_future_epoch_fee()  # next_epoch_fee
    r.skip_option_pubkey()  # preferred_deposit_validator_vote_address
    r.skip_option_pubkey()  # preferred_withdraw_validator_vote_address
    r.fee()  # stake_deposit_fee
    r.fee()  # stake_withdrawal_fee
    r.skip_future_epoch_fee()  # next_stake_withdrawal_fee
    r.u8()  # stake_referral_fee
    r.skip_option_pubkey()  # sol_deposit_authority
    r.fee()  # sol_deposit_fee
    r.u8()  # sol_referral_fee
    r.skip_option_pubkey()  # sol_withdraw_authority
    sol_withdrawal_fee = r.fee()

    return StakePoolState(
        total_lamports=total_lamports,
        pool_token_supply=pool_token_supply,
        sol_withdrawal_fee=sol_withdrawal_fee,
    )


def virtual_price_from_state(stake: StakePoolState) -> int:
    """Blend deposit and withdraw prices 3:1; raises on any arithmetic failure."""
    total_lamports = stake.total_lamports
    pool_token_supply = stake.pool_token_supply

    # may be higher if a deposit fee were applied
    deposit_price = checked_div(checked_mul(total_lamports, DEPEG_PRECISION), pool_token_supply)

    denominator = stake.sol_withdrawal_fee.denominator
    numerator = stake.sol_withdrawal_fee.numerator

    # sanity check: a withdrawal fee of 10% or more is not plausible
    if denominator <= checked_mul(numerator, 10):
        return to_u64(deposit_price, "deposit_price")

    withdraw_price = checked_mul(total_lamports, checked_sub(denominator, numerator))
    withdraw_price = checked_mul(withdraw_price, DEPEG_PRECISION)
    withdraw_price = checked_div(withdraw_price, denominator)
    withdraw_price = checked_div(withdraw_price, pool_token_supply)

    virtual_price = checked_div(checked_add(checked_mul(deposit_price, 3), withdraw_price), 4)
    return to_u64(virtual_price, "virtual_price")


def get_virtual_price(data: bytes) -> Optional[int]:
    """Virtual price of an SPL stake pool account, or ``None`` if none can be computed."""
    try:
        return virtual_price_from_state(decode_stake_pool(data))
    except QuoteError as exc:
        logger.debug("no virtual price available: %s", exc)
        return None


def _fresh_virtual_price(curve: StableCurve, stake_data: Mapping[str, bytes], stake_key: Optional[str]) -> int:
    depeg_type = curve.depeg.depeg_type
    if depeg_type != DepegType.SPL_STAKE:
        raise DepegDecodeFailure(f"no stake account decoder for depeg type {depeg_type.value}")
    if stake_key is None or stake_key not in stake_data:
        raise DepegDecodeFailure(f"missing stake pool account data for {stake_key!r}")
    price = get_virtual_price(stake_data[stake_key])
    if price is None:
        raise DepegDecodeFailure("Fail to get stake pool virtual price")
    return price


def update_base_virtual_price(
    curve: CurveType,
    current_timestamp: int,
    stake_data: Mapping[str, bytes],
    stake_key: Optional[str],
    config: QuoteConfig = DEFAULT_QUOTE_CONFIG,
) -> CurveType:
    """
    Return the curve to quote with, its depeg cache refreshed if expired.

    The input curve is never mutated; a refreshed curve is a new value.
    """
    if isinstance(curve, ConstantProductCurve):
        return curve
    if curve.depeg.depeg_type == DepegType.NONE:
        return curve

    expires_at = checked_add(curve.depeg.base_cache_updated, config.depeg_cache_expiry_seconds, bound=U64_MAX)
    if current_timestamp <= expires_at:
        logger.debug(
            "depeg cache fresh (updated %d), using base virtual price %d",
            curve.depeg.base_cache_updated,
            curve.depeg.base_virtual_price,
        )
        return curve

    virtual_price = _fresh_virtual_price(curve, stake_data, stake_key)
    logger.debug("depeg cache expired at %d, refreshed base virtual price %d", expires_at, virtual_price)
    depeg = replace(curve.depeg, base_virtual_price=virtual_price, base_cache_updated=current_timestamp)
    return replace(curve, depeg=depeg)
