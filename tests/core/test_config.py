from __future__ import annotations

from pathlib import Path

import pytest

from dynamic_amm_quote.core.config import (
    BASE_CACHE_EXPIRES,
    DEFAULT_QUOTE_CONFIG,
    QuoteConfig,
    load_quote_config,
    quote_config_from_mapping,
)


def test_defaults() -> None:
    assert DEFAULT_QUOTE_CONFIG.depeg_cache_expiry_seconds == BASE_CACHE_EXPIRES == 600
    assert DEFAULT_QUOTE_CONFIG.max_curve_iterations == 256
    assert DEFAULT_QUOTE_CONFIG.slippage_bps == 0


def test_load_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "quote.yaml"
    path.write_text("depeg_cache_expiry_seconds: 30\nslippage_bps: 50\n", encoding="utf-8")
    cfg = load_quote_config(path)
    assert cfg == QuoteConfig(depeg_cache_expiry_seconds=30, max_curve_iterations=256, slippage_bps=50)


def test_empty_yaml_yields_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_quote_config(str(path)) == DEFAULT_QUOTE_CONFIG


def test_unknown_keys_rejected() -> None:
    with pytest.raises(ValueError, match="max_iters"):
        quote_config_from_mapping({"max_iters": 10})


def test_non_mapping_rejected(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_quote_config(path)


@pytest.mark.parametrize(
    "kwargs,exc",
    [
        ({"slippage_bps": 10_001}, ValueError),
        ({"slippage_bps": -1}, ValueError),
        ({"max_curve_iterations": 0}, ValueError),
        ({"depeg_cache_expiry_seconds": -5}, ValueError),
        ({"max_curve_iterations": "256"}, TypeError),
        ({"slippage_bps": True}, TypeError),
    ],
)
def test_invalid_values_rejected(kwargs, exc) -> None:
    with pytest.raises(exc):
        QuoteConfig(**kwargs)
