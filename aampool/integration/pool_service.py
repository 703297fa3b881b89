"""
Pool service: the imperative shell around the functional pool engine.

- Owns the mapping from canonical token pair to PoolState (one pool per pair).
- Serializes every operation on a pool behind that pool's lock, so each
  deposit / withdraw / swap runs its check-then-act sequence without
  interleaving. Different pools never share a lock.
- Accepts token arguments in either order and maps amounts accordingly.
- Logs accepted operations at INFO and rejections at WARNING.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..config import EngineConfig
from ..core.liquidity import create_pool as new_pool
from ..core.liquidity import deposit as add_liquidity
from ..core.liquidity import withdraw as remove_liquidity
from ..core.swap import SwapQuote, quote_swap as quote_exact_in, swap as execute_swap
from ..errors import PoolAlreadyExistsError, PoolError, PoolNotFoundError, SameTokenSwapError
from ..state.balances import Account, Amount, BalanceTable, Ledger, TokenId
from ..state.lp import LPTable
from ..state.pools import PairKey, PoolState, canonical_pair, pool_to_dict

logger = logging.getLogger(__name__)


class PoolService:
    """
    Registry of pools keyed by canonical token pair, plus the ledgers they settle against.

    Args:
        ledger: Token ledger (defaults to an in-memory BalanceTable)
        lp: Share table for all pools (defaults to an in-memory LPTable)
        config: Engine configuration
    """

    def __init__(
        self,
        *,
        ledger: Optional[Ledger] = None,
        lp: Optional[LPTable] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.config = config if config is not None else EngineConfig()
        self.ledger: Ledger = ledger if ledger is not None else BalanceTable()
        self.lp = lp if lp is not None else LPTable()
        self._pools: Dict[PairKey, PoolState] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # -- Registry ---------------------------------------------------------

    def create_pool(
        self,
        token_a: TokenId,
        token_b: TokenId,
        fee_rate_bps: Optional[int] = None,
    ) -> PoolState:
        """
        Create the pool for a pair.

        Raises:
            PoolAlreadyExistsError: If the pair (in either order) already has a pool
        """
        fee = self.config.default_fee_rate_bps if fee_rate_bps is None else fee_rate_bps
        pool = new_pool(
            token_a,
            token_b,
            fee,
            minimum_liquidity=self.config.minimum_liquidity,
        )
        with self._registry_lock:
            if pool.pair in self._pools:
                raise PoolAlreadyExistsError(f"pool already exists for {pool.token_a}/{pool.token_b}")
            self._pools[pool.pair] = pool
            self._locks[pool.pool_id] = threading.Lock()
        logger.info(
            "Pool %s created: %s/%s fee_rate_bps=%s",
            pool.pool_id, pool.token_a, pool.token_b, pool.fee_rate_bps,
        )
        return pool

    def get_pool(self, token_a: TokenId, token_b: TokenId) -> PoolState:
        key = canonical_pair(token_a, token_b)
        with self._registry_lock:
            pool = self._pools.get(key)
        if pool is None:
            raise PoolNotFoundError(f"no pool for {key[0]}/{key[1]}")
        return pool

    def pools(self) -> List[PoolState]:
        with self._registry_lock:
            return [self._pools[k] for k in sorted(self._pools)]

    def shares_of(self, account: Account, token_a: TokenId, token_b: TokenId) -> Amount:
        return self.lp.get(account, self.get_pool(token_a, token_b).pool_id)

    def snapshot(self) -> List[Dict[str, Any]]:
        """Plain-dict view of every pool, ordered by pair."""
        out = []
        for pool in self.pools():
            with self._locked(pool):
                out.append(pool_to_dict(pool))
        return out

    # -- Operations -------------------------------------------------------

    def deposit(
        self,
        account: Account,
        token_a: TokenId,
        token_b: TokenId,
        amount_a: Amount,
        amount_b: Amount,
        *,
        min_a: Amount = 0,
        min_b: Amount = 0,
    ) -> Amount:
        """Deposit ``amount_a`` of ``token_a`` and ``amount_b`` of ``token_b``; returns shares minted."""
        pool = self.get_pool(token_a, token_b)
        if token_a != pool.token_a:
            amount_a, amount_b = amount_b, amount_a
            min_a, min_b = min_b, min_a
        with self._locked(pool), self._logged("deposit", pool, account):
            minted = add_liquidity(
                pool,
                account,
                amount_a,
                amount_b,
                ledger=self.ledger,
                shares=self.lp.registry(pool.pool_id),
                min_a=min_a,
                min_b=min_b,
            )
            logger.info(
                "deposit %s by %s: minted=%s reserves=(%s, %s) share_supply=%s",
                pool.pool_id, account, minted, pool.reserve_a, pool.reserve_b, pool.share_supply,
            )
        return minted

    def withdraw(
        self,
        account: Account,
        token_a: TokenId,
        token_b: TokenId,
        shares: Amount,
        *,
        min_a: Amount = 0,
        min_b: Amount = 0,
    ) -> Tuple[Amount, Amount]:
        """Burn ``shares``; returns the payout in the caller's (token_a, token_b) order."""
        pool = self.get_pool(token_a, token_b)
        flipped = token_a != pool.token_a
        if flipped:
            min_a, min_b = min_b, min_a
        with self._locked(pool), self._logged("withdraw", pool, account):
            out_a, out_b = remove_liquidity(
                pool,
                account,
                shares,
                ledger=self.ledger,
                shares=self.lp.registry(pool.pool_id),
                min_a=min_a,
                min_b=min_b,
            )
            logger.info(
                "withdraw %s by %s: burned=%s out=(%s, %s) share_supply=%s",
                pool.pool_id, account, shares, out_a, out_b, pool.share_supply,
            )
        return (out_b, out_a) if flipped else (out_a, out_b)

    def swap(
        self,
        account: Account,
        input_token: TokenId,
        output_token: TokenId,
        amount_in: Amount,
        minimum_amount_out: Amount,
    ) -> Amount:
        """Swap an exact ``amount_in`` of ``input_token`` for ``output_token``."""
        if input_token == output_token:
            raise SameTokenSwapError(f"cannot swap {input_token} for itself")
        pool = self.get_pool(input_token, output_token)
        with self._locked(pool), self._logged("swap", pool, account):
            amount_out = execute_swap(
                pool,
                account,
                input_token,
                amount_in,
                minimum_amount_out,
                ledger=self.ledger,
                output_token=output_token,
            )
            logger.info(
                "swap %s by %s: %s %s -> %s %s reserves=(%s, %s)",
                pool.pool_id, account, amount_in, input_token, amount_out, output_token,
                pool.reserve_a, pool.reserve_b,
            )
        return amount_out

    def quote_swap(self, input_token: TokenId, output_token: TokenId, amount_in: Amount) -> SwapQuote:
        if input_token == output_token:
            raise SameTokenSwapError(f"cannot swap {input_token} for itself")
        pool = self.get_pool(input_token, output_token)
        with self._locked(pool):
            return quote_exact_in(pool, input_token, amount_in, output_token=output_token)

    # -- Internals --------------------------------------------------------

    @contextmanager
    def _locked(self, pool: PoolState) -> Iterator[None]:
        with self._locks[pool.pool_id]:
            yield

    @contextmanager
    def _logged(self, op: str, pool: PoolState, account: Account) -> Iterator[None]:
        try:
            yield
        except PoolError as exc:
            logger.warning("%s rejected on %s for %s: %s (%s)", op, pool.pool_id, account, exc.code, exc)
            raise
