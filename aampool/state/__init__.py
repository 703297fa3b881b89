"""
State records and in-memory ledgers for the pool engine
"""

from .balances import BalanceTable, Ledger
from .lp import LPTable, PoolShares, ShareRegistry
from .pools import MINIMUM_LIQUIDITY, PoolState, PoolStatus, canonical_pair

__all__ = [
    "BalanceTable",
    "Ledger",
    "LPTable",
    "PoolShares",
    "ShareRegistry",
    "MINIMUM_LIQUIDITY",
    "PoolState",
    "PoolStatus",
    "canonical_pair",
]
