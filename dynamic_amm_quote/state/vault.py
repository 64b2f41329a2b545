"""
Yield-bearing vault state.

Only the share-accounting fields are modelled; strategy allocation lives in
the vault program and is invisible to quoting except through ``total_amount``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .accounts import PubKey


U64_MAX = (1 << 64) - 1


@dataclass(frozen=True)
class LockedProfitTracker:
    """Linear release schedule of the profit reported at ``last_report``."""

    last_updated_locked_profit: int = 0
    last_report: int = 0
    locked_profit_degradation: int = 0

    def __post_init__(self) -> None:
        for name, v in (
            ("last_updated_locked_profit", self.last_updated_locked_profit),
            ("last_report", self.last_report),
            ("locked_profit_degradation", self.locked_profit_degradation),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v <= U64_MAX):
                raise ValueError(f"{name} must be a u64: {v}")


@dataclass(frozen=True)
class Vault:
    """Vault state.

    ``total_amount`` counts every underlying token under management, including
    amounts deployed to lending strategies, so it is usually larger than the
    vault's token account balance.
    """

    total_amount: int
    locked_profit_tracker: LockedProfitTracker = field(default_factory=LockedProfitTracker)
    enabled: bool = True
    token_vault: PubKey = ""
    token_mint: PubKey = ""
    lp_mint: PubKey = ""

    def __post_init__(self) -> None:
        if not isinstance(self.total_amount, int) or isinstance(self.total_amount, bool):
            raise TypeError("total_amount must be an int")
        if not (0 <= self.total_amount <= U64_MAX):
            raise ValueError(f"total_amount must be a u64: {self.total_amount}")
