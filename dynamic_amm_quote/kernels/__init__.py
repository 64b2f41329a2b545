"""
Kernel layer.

This package groups the deterministic swap kernels used by the quote engine.
`dynamic_amm_quote/kernels/python/` contains the integer-only Python kernels;
`dynamic_amm_quote.core.curve_dispatch` selects between them per pool curve.
"""
