"""Exception types for the quote engine.

Every failure raised by ``compute_quote`` and the resolvers it composes is a
``QuoteError``. The base subclasses ``ValueError`` so callers that treat
domain failures as value errors keep working.
"""

from __future__ import annotations


class QuoteError(ValueError):
    """Base class for quote failures."""


class PoolDisabled(QuoteError):
    """Raised when the pool's ``enabled`` flag is off."""


class SwapNotYetActive(QuoteError):
    """Raised when the current activation point precedes the pool's activation point."""


class InvalidActivationType(QuoteError):
    """Raised when the pool carries an unknown activation type tag."""


class InvalidInputMint(QuoteError):
    """Raised when the input mint matches neither pool mint."""


class MathOverflow(QuoteError):
    """Raised when a checked operation leaves its integer domain or divides by zero."""


class MathUnderflow(QuoteError):
    """Raised when a checked subtraction would go negative."""


class CurveConvergenceFailure(QuoteError):
    """Raised when a stable-swap Newton solve exhausts its iteration budget."""

    def __init__(self, what: str, iterations: int) -> None:
        self.what = what
        self.iterations = iterations
        super().__init__(f"{what} did not converge after {iterations} iterations")


class InsufficientLiquidity(QuoteError):
    """Raised when the quoted output would meet or exceed the out-vault token reserve."""


class DepegDecodeFailure(QuoteError):
    """Raised when a fresh virtual price is required but cannot be produced."""


class InvalidFeeCurve(QuoteError):
    """Raised when a fee curve has no points or too many points."""
