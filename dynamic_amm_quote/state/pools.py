"""
Pool state for dynamic AMM pools.

These are already-deserialized snapshots of the on-chain pool account. They
are frozen: a quote never mutates them, it derives replacements with
``dataclasses.replace`` where it needs a locally adjusted copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Tuple, Union

from .accounts import PubKey


U64_MAX = (1 << 64) - 1
U16_MAX = (1 << 16) - 1

# Maximum number of control points in a pool fee curve.
FEE_CURVE_POINT_NUMBER = 6

# Fixed-point scale of the depeg virtual price (1.0 == 1_000_000).
DEPEG_PRECISION = 1_000_000


def _require_uint(name: str, value: int, bound: int = U64_MAX) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value <= bound):
        raise ValueError(f"{name} must be in [0, {bound}]: {value}")


class ActivationType(IntEnum):
    """How a pool's activation point is measured."""

    SLOT = 0
    TIMESTAMP = 1


class TradeDirection(Enum):
    A_TO_B = "a_to_b"
    B_TO_A = "b_to_a"


class DepegType(Enum):
    NONE = "none"
    MARINADE = "marinade"
    LIDO = "lido"
    SPL_STAKE = "spl_stake"


class FeeCurveType(Enum):
    NONE = "none"
    FLAT = "flat"
    LINEAR = "linear"


@dataclass(frozen=True)
class PoolFees:
    """Trade fee and protocol cut, both as numerator/denominator rationals."""

    trade_fee_numerator: int
    trade_fee_denominator: int
    protocol_trade_fee_numerator: int
    protocol_trade_fee_denominator: int

    def __post_init__(self) -> None:
        for name, v in (
            ("trade_fee_numerator", self.trade_fee_numerator),
            ("trade_fee_denominator", self.trade_fee_denominator),
            ("protocol_trade_fee_numerator", self.protocol_trade_fee_numerator),
            ("protocol_trade_fee_denominator", self.protocol_trade_fee_denominator),
        ):
            _require_uint(name, v)


@dataclass(frozen=True)
class FeeCurvePoint:
    fee_bps: int
    activated_point: int

    def __post_init__(self) -> None:
        _require_uint("fee_bps", self.fee_bps, U16_MAX)
        _require_uint("activated_point", self.activated_point)


@dataclass(frozen=True)
class FeeCurve:
    """Piecewise fee schedule evaluated at the pool's activation point."""

    fee_curve_type: FeeCurveType = FeeCurveType.NONE
    points: Tuple[FeeCurvePoint, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.fee_curve_type, FeeCurveType):
            raise TypeError("fee_curve_type must be a FeeCurveType")
        if len(self.points) > FEE_CURVE_POINT_NUMBER:
            raise ValueError(f"fee curve holds at most {FEE_CURVE_POINT_NUMBER} points, got {len(self.points)}")


@dataclass(frozen=True)
class TokenMultiplier:
    """Decimal-normalization factors bringing both tokens to a common precision."""

    token_a_multiplier: int
    token_b_multiplier: int
    precision_factor: int

    def __post_init__(self) -> None:
        _require_uint("token_a_multiplier", self.token_a_multiplier)
        _require_uint("token_b_multiplier", self.token_b_multiplier)
        _require_uint("precision_factor", self.precision_factor, 0xFF)
        if self.token_a_multiplier == 0 or self.token_b_multiplier == 0:
            raise ValueError("token multipliers must be positive")


@dataclass(frozen=True)
class Depeg:
    """Cached virtual price of the staking-derivative side (token B) of a stable pool."""

    base_virtual_price: int = 0
    base_cache_updated: int = 0
    depeg_type: DepegType = DepegType.NONE

    def __post_init__(self) -> None:
        _require_uint("base_virtual_price", self.base_virtual_price)
        _require_uint("base_cache_updated", self.base_cache_updated)
        if not isinstance(self.depeg_type, DepegType):
            raise TypeError("depeg_type must be a DepegType")


@dataclass(frozen=True)
class ConstantProductCurve:
    pass


@dataclass(frozen=True)
class StableCurve:
    amp: int
    token_multiplier: TokenMultiplier
    depeg: Depeg = field(default_factory=Depeg)
    last_amp_updated_timestamp: int = 0

    def __post_init__(self) -> None:
        _require_uint("amp", self.amp)
        if self.amp == 0:
            raise ValueError("amp must be positive")
        _require_uint("last_amp_updated_timestamp", self.last_amp_updated_timestamp)


CurveType = Union[ConstantProductCurve, StableCurve]


@dataclass(frozen=True)
class Bootstrapping:
    """Activation policy. ``activation_type`` is the raw on-chain tag (see ``ActivationType``)."""

    activation_point: int = 0
    activation_type: int = ActivationType.SLOT

    def __post_init__(self) -> None:
        _require_uint("activation_point", self.activation_point)
        _require_uint("activation_type", self.activation_type, 0xFF)


@dataclass(frozen=True)
class Pool:
    token_a_mint: PubKey
    token_b_mint: PubKey
    a_vault: PubKey
    b_vault: PubKey
    a_vault_lp: PubKey
    b_vault_lp: PubKey
    fees: PoolFees
    curve_type: CurveType
    enabled: bool = True
    lp_mint: PubKey = ""
    stake: Optional[PubKey] = None
    bootstrapping: Bootstrapping = field(default_factory=Bootstrapping)
    fee_curve: FeeCurve = field(default_factory=FeeCurve)
    is_update_fee_completed: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.curve_type, (ConstantProductCurve, StableCurve)):
            raise TypeError(f"unsupported curve_type: {type(self.curve_type).__name__}")
        if self.token_a_mint == self.token_b_mint:
            raise ValueError("token_a_mint and token_b_mint must differ")
