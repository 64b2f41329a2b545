"""
Two-coin StableSwap kernel (v1 semantics).

Invariant (n = 2, Ann = amp * n):

  Ann * (x + y) + D = Ann * D + D^3 / (4 * x * y)

Both reserves are first upscaled to a common basis:

  upscaled = amount * token_multiplier * price_scale

where ``price_scale`` is 1 for plain stable pools. Depeg pools price token A
at ``DEPEG_PRECISION`` and token B (the staking derivative) at its virtual
price, so the curve trades in underlying-value units.

Rounding:
- D and y are Newton iterates with floor division; a solve converges once two
  successive iterates differ by at most 1.
- One unit is withheld from the upscaled output before downscaling, so the
  result stays strictly below the destination reserve.
- Exhausting the iteration budget is an error, never an approximate answer.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...core.errors import CurveConvergenceFailure
from ...core.fixed_point import U256_MAX, checked_add, checked_div, checked_mul, checked_sub


N_COINS = 2
MAX_ITERATIONS = 256


@dataclass(frozen=True)
class SwapResult:
    new_swap_source_amount: int
    new_swap_destination_amount: int
    source_amount_swapped: int
    destination_amount_swapped: int


def _add(a: int, b: int) -> int:
    return checked_add(a, b, bound=U256_MAX)


def _sub(a: int, b: int) -> int:
    return checked_sub(a, b, bound=U256_MAX)


def _mul(a: int, b: int) -> int:
    return checked_mul(a, b, bound=U256_MAX)


def _div(a: int, b: int) -> int:
    return checked_div(a, b, bound=U256_MAX)


def _converged(a: int, b: int) -> bool:
    return (a - b if a > b else b - a) <= 1


def _compute_next_d(*, ann: int, d_init: int, d_prod: int, sum_x: int) -> int:
    # d = (ann * sum_x + d_prod * n) * d / ((ann - 1) * d + (n + 1) * d_prod)
    leverage = _mul(sum_x, ann)
    numerator = _mul(d_init, _add(_mul(d_prod, N_COINS), leverage))
    denominator = _add(_mul(d_init, _sub(ann, 1)), _mul(d_prod, N_COINS + 1))
    return _div(numerator, denominator)


def compute_d(*, amp: int, amount_a: int, amount_b: int, max_iterations: int = MAX_ITERATIONS) -> int:
    """Solve the invariant D for the (upscaled) reserves."""
    sum_x = _add(amount_a, amount_b)
    if sum_x == 0:
        return 0

    ann = _mul(amp, N_COINS)
    amount_a_times_coins = _mul(amount_a, N_COINS)
    amount_b_times_coins = _mul(amount_b, N_COINS)

    d = sum_x
    for _ in range(max_iterations):
        d_prod = _div(_mul(d, d), amount_a_times_coins)
        d_prod = _div(_mul(d_prod, d), amount_b_times_coins)
        d_prev = d
        d = _compute_next_d(ann=ann, d_init=d, d_prod=d_prod, sum_x=sum_x)
        if _converged(d, d_prev):
            return d
    raise CurveConvergenceFailure("stable invariant D", max_iterations)


def compute_y(*, amp: int, x: int, d: int, max_iterations: int = MAX_ITERATIONS) -> int:
    """Solve the other reserve y given reserve x and invariant D."""
    ann = _mul(amp, N_COINS)

    # c = D^(n+1) / (n^(2n) * x * A)
    c = _div(_mul(d, d), _mul(x, N_COINS))
    c = _div(_mul(c, d), _mul(ann, N_COINS))
    # b = x + D / Ann (D itself is subtracted in the iteration)
    b = _add(_div(d, ann), x)

    # y^2 + (b - D) * y = c
    y = d
    for _ in range(max_iterations):
        y_prev = y
        y_numerator = _add(_mul(y, y), c)
        y_denominator = _sub(_add(_mul(y, 2), b), d)
        y = _div(y_numerator, y_denominator)
        if _converged(y, y_prev):
            return y
    raise CurveConvergenceFailure("stable reserve y", max_iterations)


def swap(
    *,
    source_amount: int,
    swap_source_amount: int,
    swap_destination_amount: int,
    amp: int,
    source_multiplier: int,
    destination_multiplier: int,
    source_price_scale: int = 1,
    destination_price_scale: int = 1,
    max_iterations: int = MAX_ITERATIONS,
) -> SwapResult:
    """
    Exact-in swap quote + post-state, in token units.

    ``*_multiplier`` and ``*_price_scale`` belong to the source and destination
    tokens respectively; the caller orders them by trade direction.
    """
    if amp <= 0:
        raise ValueError("amp must be positive")

    source_scale = _mul(source_multiplier, source_price_scale)
    destination_scale = _mul(destination_multiplier, destination_price_scale)

    upscaled_source_amount = _mul(source_amount, source_scale)
    upscaled_swap_source_amount = _mul(swap_source_amount, source_scale)
    upscaled_swap_destination_amount = _mul(swap_destination_amount, destination_scale)

    d = compute_d(
        amp=amp,
        amount_a=upscaled_swap_source_amount,
        amount_b=upscaled_swap_destination_amount,
        max_iterations=max_iterations,
    )
    new_upscaled_source_amount = _add(upscaled_swap_source_amount, upscaled_source_amount)
    new_upscaled_destination_amount = compute_y(
        amp=amp, x=new_upscaled_source_amount, d=d, max_iterations=max_iterations
    )

    if new_upscaled_destination_amount >= upscaled_swap_destination_amount:
        # Input too small to move the solved reserve.
        upscaled_out = 0
    else:
        # Withhold one unit for rounding.
        upscaled_out = upscaled_swap_destination_amount - new_upscaled_destination_amount - 1

    destination_amount_swapped = _div(upscaled_out, destination_scale)
    new_swap_destination_amount = _sub(swap_destination_amount, destination_amount_swapped)

    return SwapResult(
        new_swap_source_amount=_add(swap_source_amount, source_amount),
        new_swap_destination_amount=new_swap_destination_amount,
        source_amount_swapped=source_amount,
        destination_amount_swapped=destination_amount_swapped,
    )
