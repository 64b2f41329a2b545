from __future__ import annotations

import logging
from dataclasses import replace

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from dynamic_amm_quote.core import (
    DepegDecodeFailure,
    InsufficientLiquidity,
    InvalidActivationType,
    InvalidInputMint,
    MathOverflow,
    PoolDisabled,
    QuoteConfig,
    SwapNotYetActive,
    compute_quote,
    compute_quote_with_slippage,
    max_swap_out_amount,
    min_amount_with_slippage,
)
from dynamic_amm_quote.state import (
    ActivationType,
    Bootstrapping,
    Clock,
    Depeg,
    DepegType,
    FeeCurve,
    FeeCurvePoint,
    FeeCurveType,
    Mint,
    PoolFees,
    StableCurve,
    TokenAccount,
    TokenMultiplier,
    Vault,
)
from quote_fixtures import MINT_A, MINT_B, STAKE_POOL, make_quote_data, stake_pool_bytes


def _depeg_curve(*, price: int, updated: int) -> StableCurve:
    return StableCurve(
        amp=100,
        token_multiplier=TokenMultiplier(token_a_multiplier=1, token_b_multiplier=1, precision_factor=9),
        depeg=Depeg(base_virtual_price=price, base_cache_updated=updated, depeg_type=DepegType.SPL_STAKE),
    )


def test_constant_product_quote_end_to_end() -> None:
    qd = make_quote_data()
    assert compute_quote(MINT_A, 1_000, qd) == compute_quote(MINT_B, 1_000, qd)
    res = compute_quote(MINT_A, 1_000, qd)
    # floor(1_000_000 * 1_000 / 1_001_000)
    assert (res.out_amount, res.fee) == (999, 0)


def test_protocol_fee_is_carved_out_of_trade_fee() -> None:
    fees = PoolFees(
        trade_fee_numerator=250,
        trade_fee_denominator=100_000,
        protocol_trade_fee_numerator=20,
        protocol_trade_fee_denominator=100,
    )
    qd = make_quote_data(
        reserve_a=10_000_000,
        reserve_b=10_000_000,
        token_a_balance=5_000_000,
        token_b_balance=5_000_000,
        fees=fees,
    )
    res = compute_quote(MINT_A, 1_000_000, qd)
    # trade fee 2_500, protocol cut 500; the curve prices 1_000_000 - 500 - 2_000.
    assert res.fee == 2_000
    assert res.out_amount == 10_000_000 * 997_500 // (10_000_000 + 997_500)


def test_output_rounds_through_out_vault_shares() -> None:
    qd = make_quote_data()
    qd = replace(
        qd,
        vault_b=Vault(total_amount=3_000_000, token_mint=MINT_B),
        pool_vault_b_lp_token=TokenAccount(amount=999_999),
        vault_b_lp_mint=Mint(supply=999_999),
    )
    # The curve pays 2_997; the out vault can only pay whole shares of it.
    assert compute_quote(MINT_A, 1_000, qd).out_amount == 2_994


def test_fee_curve_overrides_static_fee() -> None:
    curve = FeeCurve(fee_curve_type=FeeCurveType.FLAT, points=(FeeCurvePoint(fee_bps=100, activated_point=0),))
    qd = make_quote_data(fee_curve=curve)
    # 100 bps of 10_000, all of it to LPs.
    assert compute_quote(MINT_A, 10_000, qd).fee == 100


def test_zero_input_quotes_zero() -> None:
    res = compute_quote(MINT_A, 0, make_quote_data())
    assert (res.out_amount, res.fee) == (0, 0)


def test_disabled_pool_rejected_first() -> None:
    qd = make_quote_data(enabled=False)
    with pytest.raises(PoolDisabled):
        compute_quote("someOtherMint", 1_000, qd)


def test_disabled_pool_rejected_before_activation_is_read() -> None:
    qd = make_quote_data(enabled=False, bootstrapping=Bootstrapping(activation_type=9))
    with pytest.raises(PoolDisabled):
        compute_quote(MINT_A, 1_000, qd)

    qd = make_quote_data(
        enabled=False,
        bootstrapping=Bootstrapping(activation_type=ActivationType.TIMESTAMP),
        clock=Clock(slot=1_000, unix_timestamp=-5),
    )
    with pytest.raises(PoolDisabled):
        compute_quote(MINT_A, 1_000, qd)


@pytest.mark.parametrize("in_amount", [0, 1_000])
def test_empty_in_side_reserve_rejected(in_amount: int) -> None:
    # The out vault holds plenty of liquid tokens, but the pool owns no A shares.
    qd = replace(make_quote_data(token_b_balance=5_000_000), pool_vault_a_lp_token=TokenAccount(amount=0))
    with pytest.raises(InsufficientLiquidity):
        compute_quote(MINT_A, in_amount, qd)


def test_unknown_input_mint_rejected() -> None:
    with pytest.raises(InvalidInputMint):
        compute_quote("someOtherMint", 1_000, make_quote_data())


def test_slot_activation_gate() -> None:
    qd = make_quote_data(bootstrapping=Bootstrapping(activation_point=1_001))
    with pytest.raises(SwapNotYetActive):
        compute_quote(MINT_A, 1_000, qd)
    qd = make_quote_data(bootstrapping=Bootstrapping(activation_point=1_000))
    assert compute_quote(MINT_A, 1_000, qd).out_amount == 999


def test_timestamp_activation_gate_ignores_slot() -> None:
    # The slot (1_000) is below both points; only the timestamp (10_000) counts.
    early = Bootstrapping(activation_point=5_000, activation_type=ActivationType.TIMESTAMP)
    assert compute_quote(MINT_A, 1_000, make_quote_data(bootstrapping=early)).out_amount == 999
    late = Bootstrapping(activation_point=20_000, activation_type=ActivationType.TIMESTAMP)
    with pytest.raises(SwapNotYetActive):
        compute_quote(MINT_A, 1_000, make_quote_data(bootstrapping=late))


def test_unknown_activation_type_rejected() -> None:
    qd = make_quote_data(bootstrapping=Bootstrapping(activation_type=9))
    with pytest.raises(InvalidActivationType):
        compute_quote(MINT_A, 1_000, qd)


def test_output_must_stay_below_liquid_reserve() -> None:
    with pytest.raises(InsufficientLiquidity):
        compute_quote(MINT_A, 1_000, make_quote_data(token_b_balance=999))
    assert compute_quote(MINT_A, 1_000, make_quote_data(token_b_balance=1_000)).out_amount == 999


def test_in_amount_must_be_u64() -> None:
    with pytest.raises(MathOverflow):
        compute_quote(MINT_A, 1 << 64, make_quote_data())


def test_arithmetic_failure_names_the_step() -> None:
    qd = replace(make_quote_data(), vault_a_lp_mint=Mint(supply=0))
    with pytest.raises(MathOverflow, match="Fail to get token a amount"):
        compute_quote(MINT_A, 1_000, qd)


def test_negative_timestamp_rejected() -> None:
    qd = make_quote_data(clock=Clock(slot=1_000, unix_timestamp=-1))
    with pytest.raises(MathOverflow, match="Fail to read clock timestamp"):
        compute_quote(MINT_A, 1_000, qd)


def test_depeg_pool_refreshes_expired_virtual_price() -> None:
    stake = stake_pool_bytes(
        total_lamports=1_000_000,
        pool_token_supply=900_000,
        withdrawal_fee_numerator=1,
        withdrawal_fee_denominator=1_000,
    )
    curve = _depeg_curve(price=2_000_000, updated=0)
    qd = make_quote_data(
        reserve_a=2_000_000,
        reserve_b=2_000_000,
        token_a_balance=2_000_000,
        token_b_balance=2_000_000,
        curve=curve,
        stake=STAKE_POOL,
        stake_data={STAKE_POOL: stake},
    )
    # 1 B is worth 1.110833 A once refreshed; the stale 2.0 is ignored.
    out = compute_quote(MINT_B, 1_000, qd).out_amount
    assert 1_000 < out <= 1_110
    assert qd.pool.curve_type is curve


def test_depeg_pool_uses_fresh_cached_price() -> None:
    qd = make_quote_data(
        reserve_a=4_000_000,
        reserve_b=2_000_000,
        token_a_balance=4_000_000,
        token_b_balance=2_000_000,
        curve=_depeg_curve(price=2_000_000, updated=9_800),
        stake=STAKE_POOL,
    )
    out = compute_quote(MINT_B, 1_000, qd).out_amount
    assert 1_990 < out < 2_000


def test_depeg_pool_without_stake_data_fails_when_stale() -> None:
    qd = make_quote_data(curve=_depeg_curve(price=1_000_000, updated=0), stake=STAKE_POOL)
    with pytest.raises(DepegDecodeFailure):
        compute_quote(MINT_A, 1_000, qd)


def test_quote_logs_breakdown(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="dynamic_amm_quote.core.quote"):
        compute_quote(MINT_A, 1_000, make_quote_data())
    assert any("quote a_to_b" in r.getMessage() for r in caplog.records)


def test_quote_with_slippage() -> None:
    res, minimum = compute_quote_with_slippage(
        MINT_A, 1_000, make_quote_data(), QuoteConfig(slippage_bps=100)
    )
    assert res.out_amount == 999
    assert minimum == 989


def test_min_amount_with_slippage_bounds() -> None:
    assert min_amount_with_slippage(1_000, 0) == 1_000
    assert min_amount_with_slippage(1_000, 10_000) == 0
    with pytest.raises(ValueError):
        min_amount_with_slippage(1_000, 10_001)


def test_max_swap_out_amount_caps_by_liquid_balance() -> None:
    qd = make_quote_data(token_a_balance=2_000_000, token_b_balance=400)
    assert max_swap_out_amount(qd, MINT_A) == 1_000_000
    assert max_swap_out_amount(qd, MINT_B) == 400
    with pytest.raises(InvalidInputMint):
        max_swap_out_amount(qd, "someOtherMint")


_DEEP = make_quote_data(
    reserve_a=10**9,
    reserve_b=10**9,
    token_a_balance=10**9,
    token_b_balance=10**9,
)


@settings(max_examples=100, deadline=None)
@given(
    dx=st.integers(min_value=0, max_value=10**9),
    step=st.integers(min_value=1, max_value=10**6),
)
def test_zero_fee_quote_is_monotone(dx: int, step: int) -> None:
    lo = compute_quote(MINT_A, dx, _DEEP).out_amount
    hi = compute_quote(MINT_A, dx + step, _DEEP).out_amount
    assert lo <= hi < 10**9


_DEEP_STABLE = make_quote_data(
    reserve_a=10**9,
    reserve_b=2 * 10**9,
    token_a_balance=10**9,
    token_b_balance=2 * 10**9,
    curve=StableCurve(
        amp=100,
        token_multiplier=TokenMultiplier(token_a_multiplier=1, token_b_multiplier=1, precision_factor=6),
    ),
)


@settings(max_examples=100, deadline=None)
@given(
    in_mint=st.sampled_from([MINT_A, MINT_B]),
    dx=st.integers(min_value=0, max_value=10**9),
    step=st.integers(min_value=1, max_value=10**6),
)
def test_zero_fee_stable_quote_is_monotone(in_mint: str, dx: int, step: int) -> None:
    out_reserve = 2 * 10**9 if in_mint == MINT_A else 10**9
    lo = compute_quote(in_mint, dx, _DEEP_STABLE).out_amount
    hi = compute_quote(in_mint, dx + step, _DEEP_STABLE).out_amount
    assert lo <= hi < out_reserve
