"""`aampool`: a two-asset constant-product liquidity pool engine.

Public API:
- `create_pool(token_a, token_b, fee_rate_bps) -> PoolState`
- `deposit(pool, account, desired_a, desired_b, *, ledger, shares) -> int`
- `withdraw(pool, account, shares_in, *, ledger, shares) -> (int, int)`
- `swap(pool, account, input_token, amount_in, minimum_amount_out, *, ledger) -> int`
- `PoolService` for a pair-keyed registry with per-pool locking
"""

from .config import EngineConfig, load_config
from .core import (
    check_all,
    create_pool,
    deposit,
    quote_deposit,
    quote_swap,
    quote_withdraw,
    swap,
    withdraw,
)
from .errors import PoolError
from .integration import PoolService
from .state import BalanceTable, LPTable, PoolState, PoolStatus

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "load_config",
    "check_all",
    "create_pool",
    "deposit",
    "quote_deposit",
    "quote_swap",
    "quote_withdraw",
    "swap",
    "withdraw",
    "PoolError",
    "PoolService",
    "BalanceTable",
    "LPTable",
    "PoolState",
    "PoolStatus",
    "__version__",
]
