"""Checked unsigned integer arithmetic.

Python ints never wrap, so every helper here checks its result against an
explicit unsigned domain bound and raises instead. This mirrors the u64/u128
checked arithmetic of the on-chain program: a quote that would overflow there
must fail here too, otherwise results stop matching bit-for-bit.

All division is floor division on non-negative operands.
"""

from __future__ import annotations

from .errors import MathOverflow, MathUnderflow

U64_MAX: int = (1 << 64) - 1
U128_MAX: int = (1 << 128) - 1
U256_MAX: int = (1 << 256) - 1


def _require_uint(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def _check_bound(value: int, bound: int, op: str) -> int:
    if value > bound:
        raise MathOverflow(f"{op} overflow: {value} > {bound}")
    return value


def checked_add(a: int, b: int, *, bound: int = U128_MAX) -> int:
    _require_uint("a", a)
    _require_uint("b", b)
    return _check_bound(a + b, bound, "add")


def checked_sub(a: int, b: int, *, bound: int = U128_MAX) -> int:
    _require_uint("a", a)
    _require_uint("b", b)
    if b > a:
        raise MathUnderflow(f"sub underflow: {a} - {b}")
    return _check_bound(a - b, bound, "sub")


def checked_mul(a: int, b: int, *, bound: int = U128_MAX) -> int:
    _require_uint("a", a)
    _require_uint("b", b)
    return _check_bound(a * b, bound, "mul")


def checked_div(a: int, b: int, *, bound: int = U128_MAX) -> int:
    """``floor(a / b)``; a zero divisor is reported as ``MathOverflow``."""
    _require_uint("a", a)
    _require_uint("b", b)
    if b == 0:
        raise MathOverflow(f"division by zero: {a} / 0")
    return _check_bound(a // b, bound, "div")


def checked_ceil_div(a: int, b: int, *, bound: int = U128_MAX) -> int:
    _require_uint("a", a)
    _require_uint("b", b)
    if b == 0:
        raise MathOverflow(f"division by zero: {a} / 0")
    return _check_bound((a + b - 1) // b, bound, "ceil_div")


def mul_div(a: int, b: int, c: int, *, bound: int = U128_MAX) -> int:
    """
    Compute ``floor(a * b / c)`` with the cross product checked against ``bound``.

    This is the widened intermediate used for every share/amount conversion:
    two u64 operands always fit the u128 product.
    """
    return checked_div(checked_mul(a, b, bound=bound), c, bound=bound)


def to_u64(value: int, context: str = "value") -> int:
    """Narrow to u64, failing explicitly when the value does not fit."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{context} must be an int")
    if not (0 <= value <= U64_MAX):
        raise MathOverflow(f"{context} does not fit in u64: {value}")
    return value
