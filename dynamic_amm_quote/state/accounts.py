"""
SPL token and sysvar account snapshots consumed by the quote engine.

Deserializing account bytes into these types is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass


# Type aliases
PubKey = str  # base58 account address
Amount = int  # u64 token amount


def _require_u64(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value < (1 << 64)):
        raise ValueError(f"{name} must be a u64: {value}")


@dataclass(frozen=True)
class TokenAccount:
    """Token account balance. Only ``amount`` matters to quoting."""

    amount: Amount
    mint: PubKey = ""

    def __post_init__(self) -> None:
        _require_u64("amount", self.amount)


@dataclass(frozen=True)
class Mint:
    supply: Amount
    decimals: int = 0

    def __post_init__(self) -> None:
        _require_u64("supply", self.supply)
        if not (0 <= self.decimals <= 0xFF):
            raise ValueError(f"decimals must be a u8: {self.decimals}")


@dataclass(frozen=True)
class Clock:
    """Clock sysvar. ``unix_timestamp`` is signed on chain."""

    slot: int
    unix_timestamp: int

    def __post_init__(self) -> None:
        _require_u64("slot", self.slot)
        if not isinstance(self.unix_timestamp, int) or isinstance(self.unix_timestamp, bool):
            raise TypeError("unix_timestamp must be an int")
