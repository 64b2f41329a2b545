"""
Constant-product swap kernel (v1 semantics).

Fees are not charged here: the quote orchestrator removes them before the
curve is invoked, so the kernel prices a net input amount.

  k = x * y
  dy = floor(y * dx / (x + dx))

The trade direction only decides which reserve is "in"; callers pass the
source and destination reserves already ordered.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...core.errors import InsufficientLiquidity
from ...core.fixed_point import U128_MAX, checked_add, checked_div, checked_mul, checked_sub


@dataclass(frozen=True)
class SwapResult:
    new_swap_source_amount: int
    new_swap_destination_amount: int
    source_amount_swapped: int
    destination_amount_swapped: int


def swap(
    *,
    source_amount: int,
    swap_source_amount: int,
    swap_destination_amount: int,
) -> SwapResult:
    """
    Exact-in swap quote + post-state.

    All intermediates are checked in the u128 domain. An empty source reserve
    would price any input at the whole destination reserve, so it is refused.
    """
    if swap_source_amount == 0:
        raise InsufficientLiquidity("cannot swap against an empty source reserve")

    new_swap_source_amount = checked_add(swap_source_amount, source_amount, bound=U128_MAX)
    numerator = checked_mul(swap_destination_amount, source_amount, bound=U128_MAX)
    destination_amount_swapped = checked_div(numerator, new_swap_source_amount)

    # dy < y since swap_source_amount > 0
    new_swap_destination_amount = checked_sub(swap_destination_amount, destination_amount_swapped)

    return SwapResult(
        new_swap_source_amount=new_swap_source_amount,
        new_swap_destination_amount=new_swap_destination_amount,
        source_amount_swapped=source_amount,
        destination_amount_swapped=destination_amount_swapped,
    )
