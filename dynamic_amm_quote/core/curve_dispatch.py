"""
Curve dispatch for swap quoting.

``Pool.curve_type`` is a closed set of variants; this module maps each one to
its swap kernel and orders the kernel arguments by trade direction.
"""

from __future__ import annotations

from typing import Tuple, Union

from ..kernels.python import constant_product_swap_v1, stable_swap_v1
from ..state.pools import DEPEG_PRECISION, ConstantProductCurve, CurveType, DepegType, StableCurve, TradeDirection
from .config import DEFAULT_QUOTE_CONFIG, QuoteConfig


def _stable_scales(curve: StableCurve) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """((multiplier, price_scale) of token A, (multiplier, price_scale) of token B)."""
    tm = curve.token_multiplier
    if curve.depeg.depeg_type == DepegType.NONE:
        return (tm.token_a_multiplier, 1), (tm.token_b_multiplier, 1)
    return (tm.token_a_multiplier, DEPEG_PRECISION), (tm.token_b_multiplier, curve.depeg.base_virtual_price)


def swap_for_curve(
    curve: CurveType,
    *,
    source_amount: int,
    swap_source_amount: int,
    swap_destination_amount: int,
    trade_direction: TradeDirection,
    config: QuoteConfig = DEFAULT_QUOTE_CONFIG,
) -> Union[constant_product_swap_v1.SwapResult, stable_swap_v1.SwapResult]:
    if isinstance(curve, ConstantProductCurve):
        return constant_product_swap_v1.swap(
            source_amount=source_amount,
            swap_source_amount=swap_source_amount,
            swap_destination_amount=swap_destination_amount,
        )
    if isinstance(curve, StableCurve):
        token_a, token_b = _stable_scales(curve)
        source, destination = (token_a, token_b) if trade_direction == TradeDirection.A_TO_B else (token_b, token_a)
        return stable_swap_v1.swap(
            source_amount=source_amount,
            swap_source_amount=swap_source_amount,
            swap_destination_amount=swap_destination_amount,
            amp=curve.amp,
            source_multiplier=source[0],
            source_price_scale=source[1],
            destination_multiplier=destination[0],
            destination_price_scale=destination[1],
            max_iterations=config.max_curve_iterations,
        )
    raise ValueError(f"unsupported pool curve_type: {type(curve).__name__}")
