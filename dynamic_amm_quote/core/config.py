"""
Runtime config for the quote engine.

The config is a plain frozen value passed into ``compute_quote``; nothing is
read from the environment. ``load_quote_config`` builds one from a YAML file
for shells that keep their settings on disk.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from .fixed_point import U64_MAX

# Seconds a stored base virtual price stays valid before a refresh is mandatory.
BASE_CACHE_EXPIRES = 60 * 10

BPS_DENOM = 10_000


@dataclass(frozen=True)
class QuoteConfig:
    """Runtime config for a quote."""

    depeg_cache_expiry_seconds: int = BASE_CACHE_EXPIRES
    max_curve_iterations: int = 256
    slippage_bps: int = 0

    def __post_init__(self) -> None:
        for f in fields(self):
            v = getattr(self, f.name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{f.name} must be an int")
        if not (0 <= self.depeg_cache_expiry_seconds <= U64_MAX):
            raise ValueError(f"depeg_cache_expiry_seconds must be a u64: {self.depeg_cache_expiry_seconds}")
        if self.max_curve_iterations <= 0:
            raise ValueError(f"max_curve_iterations must be positive: {self.max_curve_iterations}")
        if not (0 <= self.slippage_bps <= BPS_DENOM):
            raise ValueError(f"slippage_bps must be in [0, {BPS_DENOM}]: {self.slippage_bps}")


DEFAULT_QUOTE_CONFIG = QuoteConfig()


def quote_config_from_mapping(obj: Mapping[str, Any]) -> QuoteConfig:
    if not isinstance(obj, Mapping):
        raise TypeError("quote config must be a mapping")
    known = {f.name for f in fields(QuoteConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"unknown quote config keys: {', '.join(unknown)}")
    return QuoteConfig(**dict(obj))


def load_quote_config(path: Union[str, Path]) -> QuoteConfig:
    """Load a ``QuoteConfig`` from a YAML mapping; an empty file yields the defaults."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return DEFAULT_QUOTE_CONFIG
    return quote_config_from_mapping(obj)
