"""
Core pool algorithms (pure arithmetic, quotes, and check-then-act operations)
"""

from .liquidity import (
    DepositQuote,
    WithdrawQuote,
    create_pool,
    deposit,
    quote_deposit,
    quote_withdraw,
    withdraw,
)
from .swap import SwapQuote, compute_amount_out, quote_swap, swap
from .invariants import INVARIANT_REGISTRY, check_all, require_all

__all__ = [
    "DepositQuote",
    "WithdrawQuote",
    "create_pool",
    "deposit",
    "quote_deposit",
    "quote_withdraw",
    "withdraw",
    "SwapQuote",
    "compute_amount_out",
    "quote_swap",
    "swap",
    "INVARIANT_REGISTRY",
    "check_all",
    "require_all",
]
