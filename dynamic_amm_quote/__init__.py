"""
Swap quote engine for vault-backed dynamic AMM pools.
"""

__version__ = "0.1.0"
