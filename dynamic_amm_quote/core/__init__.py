"""
Core quote engine algorithms
"""

from .config import QuoteConfig, load_quote_config
from .curve_dispatch import swap_for_curve
from .depeg import decode_stake_pool, get_virtual_price, update_base_virtual_price
from .errors import (
    CurveConvergenceFailure,
    DepegDecodeFailure,
    InsufficientLiquidity,
    InvalidActivationType,
    InvalidFeeCurve,
    InvalidInputMint,
    MathOverflow,
    MathUnderflow,
    PoolDisabled,
    QuoteError,
    SwapNotYetActive,
)
from .fees import calculate_fee, effective_fees, protocol_trading_fee, trading_fee
from .quote import (
    QuoteData,
    QuoteResult,
    compute_quote,
    compute_quote_with_slippage,
    max_swap_out_amount,
    min_amount_with_slippage,
)
from .vault_shares import (
    VaultSnapshot,
    amount_from_shares,
    compute_pool_tokens,
    shares_from_deposit,
    total_unlocked_value,
)

__all__ = [
    "QuoteConfig",
    "load_quote_config",
    "swap_for_curve",
    "decode_stake_pool",
    "get_virtual_price",
    "update_base_virtual_price",
    "CurveConvergenceFailure",
    "DepegDecodeFailure",
    "InsufficientLiquidity",
    "InvalidActivationType",
    "InvalidFeeCurve",
    "InvalidInputMint",
    "MathOverflow",
    "MathUnderflow",
    "PoolDisabled",
    "QuoteError",
    "SwapNotYetActive",
    "calculate_fee",
    "effective_fees",
    "protocol_trading_fee",
    "trading_fee",
    "QuoteData",
    "QuoteResult",
    "compute_quote",
    "compute_quote_with_slippage",
    "max_swap_out_amount",
    "min_amount_with_slippage",
    "VaultSnapshot",
    "amount_from_shares",
    "compute_pool_tokens",
    "shares_from_deposit",
    "total_unlocked_value",
]
