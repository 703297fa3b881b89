"""
Pool-share (LP token) balance tracking.

Shares are scoped per pool_id and tracked separately from token balances.
The engine only sees a ``ShareRegistry`` bound to one pool; ``LPTable`` stores
every pool's holders and hands out such views via ``LPTable.registry()``.
"""

from __future__ import annotations

import threading
from typing import Dict, Protocol, Tuple

from ..errors import InsufficientSharesError
from .balances import Account, Amount

# Type alias
PoolId = str


class ShareRegistry(Protocol):
    """Capability to mint and burn one pool's share tokens."""

    def balance_of(self, account: Account) -> Amount:
        ...

    def mint(self, account: Account, amount: Amount) -> None:
        ...

    def burn(self, account: Account, amount: Amount) -> None:
        """Remove ``amount`` shares; raises InsufficientSharesError."""
        ...


class LPTable:
    """
    Share balance table mapping (account, pool_id) -> shares.

    Notes:
    - Balances are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    - The locked minimum liquidity is never stored here; it has no holder.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Account, PoolId], Amount] = {}
        self._lock = threading.Lock()

    def get(self, account: Account, pool_id: PoolId) -> Amount:
        """Get share balance for (account, pool_id). Returns 0 if not found."""
        return self._balances.get((account, pool_id), 0)

    def _set(self, account: Account, pool_id: PoolId, amount: Amount) -> None:
        if amount == 0:
            self._balances.pop((account, pool_id), None)
        else:
            self._balances[(account, pool_id)] = amount

    def mint(self, account: Account, pool_id: PoolId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Mint amount must be non-negative: {amount}")
        with self._lock:
            self._set(account, pool_id, self.get(account, pool_id) + amount)

    def burn(self, account: Account, pool_id: PoolId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Burn amount must be non-negative: {amount}")
        with self._lock:
            current = self.get(account, pool_id)
            if current < amount:
                raise InsufficientSharesError(
                    f"Insufficient shares for {account} in {pool_id}: {current} < {amount}"
                )
            self._set(account, pool_id, current - amount)

    def held_supply(self, pool_id: PoolId) -> Amount:
        """Sum of all holders' shares for one pool (excludes the locked minimum)."""
        return sum(amount for (_, p), amount in self._balances.items() if p == pool_id)

    def registry(self, pool_id: PoolId) -> "PoolShares":
        """Return a ShareRegistry view bound to ``pool_id``."""
        return PoolShares(self, pool_id)

    def __repr__(self) -> str:
        return f"LPTable({len(self._balances)} entries)"


class PoolShares:
    """``ShareRegistry`` for a single pool, backed by an ``LPTable``."""

    def __init__(self, table: LPTable, pool_id: PoolId) -> None:
        self._table = table
        self.pool_id = pool_id

    def balance_of(self, account: Account) -> Amount:
        return self._table.get(account, self.pool_id)

    def mint(self, account: Account, amount: Amount) -> None:
        self._table.mint(account, self.pool_id, amount)

    def burn(self, account: Account, amount: Amount) -> None:
        self._table.burn(account, self.pool_id, amount)

    def __repr__(self) -> str:
        return f"PoolShares(pool_id={self.pool_id[:16]}...)"
