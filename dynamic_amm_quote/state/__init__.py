"""
Deserialized on-chain state consumed by the quote engine
"""

from .accounts import Clock, Mint, TokenAccount
from .pools import (
    ActivationType,
    Bootstrapping,
    ConstantProductCurve,
    CurveType,
    Depeg,
    DepegType,
    FeeCurve,
    FeeCurvePoint,
    FeeCurveType,
    Pool,
    PoolFees,
    StableCurve,
    TokenMultiplier,
    TradeDirection,
)
from .vault import LockedProfitTracker, Vault

__all__ = [
    "Clock",
    "Mint",
    "TokenAccount",
    "ActivationType",
    "Bootstrapping",
    "ConstantProductCurve",
    "CurveType",
    "Depeg",
    "DepegType",
    "FeeCurve",
    "FeeCurvePoint",
    "FeeCurveType",
    "Pool",
    "PoolFees",
    "StableCurve",
    "TokenMultiplier",
    "TradeDirection",
    "LockedProfitTracker",
    "Vault",
]
