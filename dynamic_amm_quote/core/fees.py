"""
Fee schedule kernels (deterministic, integer-only).

Two concerns live here:
- resolving the fee rate in force at an activation point, either the pool's
  static ``PoolFees`` or a point on its scheduled fee curve;
- applying a rate to an amount.

The protocol fee is a cut *of* the trade fee, never an addition to it.
"""

from __future__ import annotations

import logging

from ..state.pools import FeeCurveType, Pool, PoolFees
from .errors import InvalidFeeCurve
from .fixed_point import U64_MAX, checked_div, checked_mul


logger = logging.getLogger(__name__)

# fee_bps -> trade_fee_numerator scale (trade fee denominator is 100_000)
FEE_BPS_TO_NUMERATOR = 10


def calculate_fee(token_amount: int, fee_numerator: int, fee_denominator: int) -> int:
    """
    ``floor(token_amount * fee_numerator / fee_denominator)``, with a one-unit
    minimum whenever a nonzero rate applies to a nonzero amount.
    """
    if fee_numerator == 0 or token_amount == 0:
        return 0
    fee = checked_div(checked_mul(token_amount, fee_numerator), fee_denominator)
    if fee == 0:
        return 1
    return fee


def trading_fee(fees: PoolFees, trading_tokens: int) -> int:
    return calculate_fee(trading_tokens, fees.trade_fee_numerator, fees.trade_fee_denominator)


def protocol_trading_fee(fees: PoolFees, trading_tokens: int) -> int:
    return calculate_fee(
        trading_tokens, fees.protocol_trade_fee_numerator, fees.protocol_trade_fee_denominator
    )


def _fee_bps_at(pool: Pool, current_point: int) -> int:
    curve = pool.fee_curve
    points = curve.points
    if not points:
        raise InvalidFeeCurve(f"fee curve {curve.fee_curve_type.value} has no points")

    for i, point in enumerate(points):
        # current_point lies between points i-1 and i
        if point.activated_point < current_point:
            continue
        if i == 0:
            return point.fee_bps
        prev = points[i - 1]
        if curve.fee_curve_type == FeeCurveType.FLAT:
            return prev.fee_bps

        a = prev.activated_point
        b = point.activated_point
        if b == a:
            return prev.fee_bps
        numerator = point.fee_bps * (current_point - a) + prev.fee_bps * (b - current_point)
        return numerator // (b - a)

    # Curve fully elapsed.
    return points[-1].fee_bps


def effective_fees(pool: Pool, current_point: int) -> PoolFees:
    """Fees in force at ``current_point`` (slot or timestamp, per the pool's activation type)."""
    if pool.fee_curve.fee_curve_type == FeeCurveType.NONE or pool.is_update_fee_completed:
        return pool.fees

    fee_bps = _fee_bps_at(pool, current_point)
    trade_fee_numerator = checked_mul(fee_bps, FEE_BPS_TO_NUMERATOR, bound=U64_MAX)
    logger.debug(
        "fee curve %s at point %d resolved to %d bps",
        pool.fee_curve.fee_curve_type.value,
        current_point,
        fee_bps,
    )

    return PoolFees(
        trade_fee_numerator=trade_fee_numerator,
        trade_fee_denominator=pool.fees.trade_fee_denominator,
        protocol_trade_fee_numerator=pool.fees.protocol_trade_fee_numerator,
        protocol_trade_fee_denominator=pool.fees.protocol_trade_fee_denominator,
    )
