"""Exception types for the pool engine.

Every rejection raised by the engine is a ``PoolError`` subclass carrying a
stable ``code`` string. All of them are raised before any ledger or share
registry effect is issued, so a caught ``PoolError`` always means the pool and
the balances are exactly as they were before the call.

``PoolError`` derives from ``ValueError`` so callers that treat rejected inputs
as ``ValueError`` keep working.
"""

from __future__ import annotations


class PoolError(ValueError):
    """Base class for all engine rejections."""

    code: str = "PoolError"


class ZeroAmountError(PoolError):
    """An input amount (deposit, swap or burn) was zero."""

    code = "ZeroAmount"


class InvalidTokenError(PoolError):
    """A token identity does not belong to the pool, or a pair is degenerate."""

    code = "InvalidToken"


class SameTokenSwapError(PoolError):
    """Input and output token of a swap are the same."""

    code = "SameTokenSwap"


class InvalidFeeRateError(PoolError):
    """Fee rate outside ``[0, 10000)`` basis points."""

    code = "InvalidFeeRate"


class ArithmeticOverflowError(PoolError):
    """An intermediate or final value does not fit its declared integer width."""

    code = "ArithmeticOverflow"


class DivisionByZeroError(PoolError):
    code = "DivisionByZero"


class InsufficientInitialLiquidityError(PoolError):
    """``isqrt(amount_a * amount_b)`` does not exceed the minimum liquidity lock."""

    code = "InsufficientInitialLiquidity"


class InsufficientLiquidityError(PoolError):
    """The operation would mint, burn or move zero units (dust)."""

    code = "InsufficientLiquidity"


class LiquidityRatioMismatchError(PoolError):
    """Ratio-preserving deposit amounts fall below the caller's minimums."""

    code = "LiquidityRatioMismatch"


class InsufficientSharesError(PoolError):
    code = "InsufficientShares"


class InsufficientBalanceError(PoolError):
    code = "InsufficientBalance"


class InsufficientReservesError(PoolError):
    """The computed output would consume the entire output reserve."""

    code = "InsufficientReserves"


class SlippageExceededError(PoolError):
    """Output fell below the caller-supplied floor."""

    code = "SlippageExceeded"


class PoolWouldBeDrainedError(PoolError):
    """Burning would leave a positive share supply below the locked minimum."""

    code = "PoolWouldBeDrained"


class InvariantViolationError(PoolError):
    """A candidate post-state violates one or more pool invariants."""

    code = "InvariantViolation"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


class PoolAlreadyExistsError(PoolError):
    code = "PoolAlreadyExists"


class PoolNotFoundError(PoolError):
    code = "PoolNotFound"


class ConfigError(PoolError):
    """Invalid engine configuration."""

    code = "ConfigError"


__all__ = [
    "PoolError",
    "ZeroAmountError",
    "InvalidTokenError",
    "SameTokenSwapError",
    "InvalidFeeRateError",
    "ArithmeticOverflowError",
    "DivisionByZeroError",
    "InsufficientInitialLiquidityError",
    "InsufficientLiquidityError",
    "LiquidityRatioMismatchError",
    "InsufficientSharesError",
    "InsufficientBalanceError",
    "InsufficientReservesError",
    "SlippageExceededError",
    "PoolWouldBeDrainedError",
    "InvariantViolationError",
    "PoolAlreadyExistsError",
    "PoolNotFoundError",
    "ConfigError",
]
