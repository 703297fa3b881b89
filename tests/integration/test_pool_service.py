"""Tests for aampool/integration/pool_service.py: pair registry, ordering, locking and logging."""

import logging
import threading

import pytest

from aampool.config import EngineConfig
from aampool.errors import (
    InsufficientBalanceError,
    InvalidFeeRateError,
    InvalidTokenError,
    PoolAlreadyExistsError,
    PoolNotFoundError,
    SameTokenSwapError,
    SlippageExceededError,
)
from aampool.integration.pool_service import PoolService
from aampool.state.balances import BalanceTable
from aampool.state.pools import PoolStatus

A = "mint-a"
B = "mint-b"
C = "mint-c"
PROVIDER = "provider"


class _SwapOnOtherPoolBeforeDebit(BalanceTable):
    """Runs ``hook`` once, between a deposit's balance pre-checks and its debits."""

    hook = None

    def debit_many(self, debits):
        hook, self.hook = self.hook, None
        if hook is not None:
            hook()
        super().debit_many(debits)


@pytest.fixture
def service():
    svc = PoolService()
    svc.ledger.credit(A, PROVIDER, 100_000)
    svc.ledger.credit(B, PROVIDER, 200_000)
    return svc


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_create_uses_default_fee(self, service):
        pool = service.create_pool(A, B)
        assert pool.fee_rate_bps == 30
        assert pool.status == PoolStatus.EMPTY

    def test_config_applies(self):
        svc = PoolService(config=EngineConfig(minimum_liquidity=10, default_fee_rate_bps=100))
        pool = svc.create_pool(A, B)
        assert (pool.minimum_liquidity, pool.fee_rate_bps) == (10, 100)

    def test_explicit_fee(self, service):
        assert service.create_pool(A, B, 5).fee_rate_bps == 5

    def test_invalid_fee(self, service):
        with pytest.raises(InvalidFeeRateError):
            service.create_pool(A, B, 10_000)

    def test_one_pool_per_pair(self, service):
        service.create_pool(A, B)
        with pytest.raises(PoolAlreadyExistsError):
            service.create_pool(B, A)

    def test_get_pool_either_order(self, service):
        pool = service.create_pool(B, A)
        assert service.get_pool(A, B) is pool
        assert service.get_pool(B, A) is pool

    def test_missing_pool(self, service):
        with pytest.raises(PoolNotFoundError):
            service.get_pool(A, C)

    def test_same_token_pair(self, service):
        with pytest.raises(InvalidTokenError):
            service.create_pool(A, A)

    def test_pools_sorted(self, service):
        service.create_pool(B, C)
        service.create_pool(A, C)
        service.create_pool(A, B)
        assert [p.pair for p in service.pools()] == [(A, B), (A, C), (B, C)]

    def test_snapshot(self, service):
        pool = service.create_pool(A, B)
        snap = service.snapshot()
        assert snap[0]["pool_id"] == pool.pool_id
        assert snap[0]["reserve_a"] == 0


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

class TestOperations:
    def test_reference_session(self, service):
        pool = service.create_pool(A, B)

        minted = service.deposit(PROVIDER, A, B, 50_000, 50_000)
        assert minted == 49_000
        assert service.shares_of(PROVIDER, A, B) == 49_000
        assert (pool.reserve_a, pool.reserve_b, pool.share_supply) == (50_000, 50_000, 50_000)

        out = service.swap(PROVIDER, A, B, 10_000, 8_000)
        assert out == 8312
        assert (pool.reserve_a, pool.reserve_b) == (60_000, 41_688)
        assert service.ledger.balance_of(A, PROVIDER) == 40_000
        assert service.ledger.balance_of(B, PROVIDER) == 158_312

        with pytest.raises(SlippageExceededError):
            service.swap(PROVIDER, A, B, 10_000, 9_000)
        assert (pool.reserve_a, pool.reserve_b) == (60_000, 41_688)

    def test_deposit_in_reverse_order(self, service):
        pool = service.create_pool(A, B)
        service.deposit(PROVIDER, B, A, 50_000, 20_000)
        assert (pool.reserve_a, pool.reserve_b) == (20_000, 50_000)

    def test_withdraw_returns_caller_order(self, service):
        pool = service.create_pool(A, B)
        service.deposit(PROVIDER, A, B, 20_000, 50_000)
        out_b, out_a = service.withdraw(PROVIDER, B, A, 10_000)
        assert pool.share_supply == 31_622 - 10_000
        assert (out_a, out_b) == (
            10_000 * 20_000 // 31_622,
            10_000 * 50_000 // 31_622,
        )

    def test_swap_reverse_direction(self, service):
        pool = service.create_pool(A, B)
        service.deposit(PROVIDER, A, B, 50_000, 50_000)
        assert service.swap(PROVIDER, B, A, 10_000, 0) == 8312
        assert (pool.reserve_a, pool.reserve_b) == (41_688, 60_000)

    def test_swap_same_token(self, service):
        service.create_pool(A, B)
        with pytest.raises(SameTokenSwapError):
            service.swap(PROVIDER, A, A, 10_000, 0)

    def test_swap_unknown_pair(self, service):
        service.create_pool(A, B)
        with pytest.raises(PoolNotFoundError):
            service.swap(PROVIDER, A, C, 10_000, 0)

    def test_quote_matches_execution(self, service):
        service.create_pool(A, B)
        service.deposit(PROVIDER, A, B, 50_000, 50_000)
        q = service.quote_swap(A, B, 10_000)
        assert service.swap(PROVIDER, A, B, 10_000, 0) == q.amount_out

    def test_pools_are_isolated(self, service):
        service.ledger.credit(C, PROVIDER, 100_000)
        ab = service.create_pool(A, B)
        ac = service.create_pool(A, C)
        service.deposit(PROVIDER, A, B, 20_000, 20_000)
        service.deposit(PROVIDER, A, C, 30_000, 30_000)
        service.swap(PROVIDER, A, C, 1_000, 0)
        assert (ab.reserve_a, ab.reserve_b) == (20_000, 20_000)
        assert ac.reserve_a == 31_000


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class TestConcurrency:
    def test_parallel_swaps_conserve_tokens(self):
        ledger = BalanceTable()
        svc = PoolService(ledger=ledger)
        pool = svc.create_pool(A, B)
        ledger.credit(A, PROVIDER, 1_000_000)
        ledger.credit(B, PROVIDER, 1_000_000)
        svc.deposit(PROVIDER, A, B, 1_000_000, 1_000_000)

        traders = [f"trader-{i}" for i in range(8)]
        for t in traders:
            ledger.credit(A, t, 50_000)
            ledger.credit(B, t, 50_000)
        total_a = ledger.total_of(A) + pool.reserve_a
        total_b = ledger.total_of(B) + pool.reserve_b

        errors = []
        k0 = pool.constant_product()

        def worker(account, token_in, token_out):
            try:
                for _ in range(50):
                    svc.swap(account, token_in, token_out, 500, 0)
            except Exception as exc:  # surfaced below
                errors.append(exc)

        threads = [
            threading.Thread(target=worker, args=(t, A, B) if i % 2 else (t, B, A))
            for i, t in enumerate(traders)
        ]
        for th in threads:
            th.start()
        for th in threads:
            th.join()

        assert errors == []
        assert pool.constant_product() >= k0
        assert ledger.total_of(A) + pool.reserve_a == total_a
        assert ledger.total_of(B) + pool.reserve_b == total_b
        assert ledger.balance_of(A, "trader-1") == 50_000 - 50 * 500

    def test_deposit_loses_nothing_when_other_pool_spends_first(self):
        ledger = _SwapOnOtherPoolBeforeDebit()
        svc = PoolService(ledger=ledger)
        ab = svc.create_pool(A, B)
        bc = svc.create_pool(B, C)
        ledger.credit(B, PROVIDER, 100_000)
        ledger.credit(C, PROVIDER, 100_000)
        svc.deposit(PROVIDER, B, C, 100_000, 100_000)
        ledger.credit(A, "alice", 50_000)
        ledger.credit(B, "alice", 50_000)

        def spend():
            # a swap on B/C spends alice's B between the A/B balance check and its debits
            th = threading.Thread(target=svc.swap, args=("alice", B, C, 10_000, 0))
            th.start()
            th.join()

        ledger.hook = spend
        with pytest.raises(InsufficientBalanceError):
            svc.deposit("alice", A, B, 50_000, 50_000)

        assert ledger.balance_of(A, "alice") == 50_000
        assert ledger.balance_of(B, "alice") == 40_000
        assert ledger.balance_of(C, "alice") > 0
        assert (ab.reserve_a, ab.reserve_b, ab.share_supply) == (0, 0, 0)
        assert svc.shares_of("alice", A, B) == 0
        assert bc.reserve_a == 110_000


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

class TestLogging:
    def test_accepted_and_rejected(self, service, caplog):
        caplog.set_level(logging.INFO, logger="aampool.integration.pool_service")
        service.create_pool(A, B)
        service.deposit(PROVIDER, A, B, 50_000, 50_000)
        with pytest.raises(SlippageExceededError):
            service.swap(PROVIDER, A, B, 10_000, 9_000)

        messages = [r.getMessage() for r in caplog.records]
        assert any("created" in m for m in messages)
        assert any("minted=49000" in m for m in messages)
        rejected = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(rejected) == 1
        assert "SlippageExceeded" in rejected[0].getMessage()
