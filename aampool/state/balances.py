"""
Token balance ledger.

Defines the ``Ledger`` capability the engine debits and credits, and
``BalanceTable``, an in-memory implementation keyed by (account, token).
"""

from __future__ import annotations

import threading
from typing import Dict, Protocol, Sequence, Tuple

from ..errors import InsufficientBalanceError


# Type aliases
Account = str  # opaque account reference supplied by the host
TokenId = str  # token identifier (mint address, symbol, ...)
Amount = int  # Non-negative integer


class Ledger(Protocol):
    """Capability to move token balances on behalf of the pool."""

    def balance_of(self, token: TokenId, account: Account) -> Amount:
        ...

    def debit(self, token: TokenId, account: Account, amount: Amount) -> None:
        """Remove ``amount`` from the account; raises InsufficientBalanceError."""
        ...

    def credit(self, token: TokenId, account: Account, amount: Amount) -> None:
        ...

    def debit_many(self, debits: Sequence[Tuple[TokenId, Account, Amount]]) -> None:
        """Apply every debit or none of them; raises InsufficientBalanceError."""
        ...


def require_balance(ledger: Ledger, token: TokenId, account: Account, amount: Amount) -> None:
    """Raise InsufficientBalanceError unless ``account`` holds at least ``amount`` of ``token``."""
    available = ledger.balance_of(token, account)
    if available < amount:
        raise InsufficientBalanceError(
            f"Insufficient {token} balance for {account}: {available} < {amount}"
        )


class BalanceTable:
    """
    Balance table mapping (account, token) -> amount.

    Note: balances live in a plain dict. Do not rely on dict iteration order;
    sort keys explicitly where a stable order matters.
    Mutations are serialized by an internal lock so pools running on different
    threads can share one table.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Account, TokenId], Amount] = {}
        self._lock = threading.Lock()

    def balance_of(self, token: TokenId, account: Account) -> Amount:
        """Get balance for (account, token). Returns 0 if not found."""
        return self._balances.get((account, token), 0)

    def _set(self, token: TokenId, account: Account, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop((account, token), None)
        else:
            self._balances[(account, token)] = amount

    def credit(self, token: TokenId, account: Account, amount: Amount) -> None:
        """
        Add amount to an account's balance.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Credit must be non-negative: {amount}")
        with self._lock:
            self._set(token, account, self.balance_of(token, account) + amount)

    def debit(self, token: TokenId, account: Account, amount: Amount) -> None:
        """
        Subtract amount from an account's balance.

        Raises:
            ValueError: If amount is negative
            InsufficientBalanceError: If the balance is smaller than amount
        """
        if amount < 0:
            raise ValueError(f"Debit must be non-negative: {amount}")
        with self._lock:
            current = self.balance_of(token, account)
            if current < amount:
                raise InsufficientBalanceError(
                    f"Insufficient {token} balance for {account}: {current} < {amount}"
                )
            self._set(token, account, current - amount)

    def debit_many(self, debits: Sequence[Tuple[TokenId, Account, Amount]]) -> None:
        """
        Subtract several amounts under one lock acquisition.

        Every leg is checked before any is applied, so a failure leaves all
        balances unchanged. Legs on the same (account, token) accumulate.

        Raises:
            ValueError: If any amount is negative
            InsufficientBalanceError: If any balance cannot cover its total
        """
        totals: Dict[Tuple[Account, TokenId], Amount] = {}
        for token, account, amount in debits:
            if amount < 0:
                raise ValueError(f"Debit must be non-negative: {amount}")
            totals[(account, token)] = totals.get((account, token), 0) + amount
        with self._lock:
            for (account, token), amount in totals.items():
                current = self.balance_of(token, account)
                if current < amount:
                    raise InsufficientBalanceError(
                        f"Insufficient {token} balance for {account}: {current} < {amount}"
                    )
            for (account, token), amount in totals.items():
                self._set(token, account, self.balance_of(token, account) - amount)

    def total_of(self, token: TokenId) -> Amount:
        """Sum of all account balances of one token."""
        return sum(amount for (_, t), amount in self._balances.items() if t == token)

    def get_all_balances(self) -> Dict[Tuple[Account, TokenId], Amount]:
        return dict(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
