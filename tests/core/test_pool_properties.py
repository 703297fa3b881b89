"""Property tests for pricing and share accounting."""

from __future__ import annotations

import math

import hypothesis.strategies as st
from hypothesis import assume, given, settings

from aampool.core.liquidity import create_pool, deposit, quote_deposit, withdraw
from aampool.core.math import U64_MAX
from aampool.core.swap import compute_amount_out
from aampool.errors import PoolError
from aampool.state.balances import BalanceTable
from aampool.state.lp import LPTable

reserves = st.integers(min_value=1, max_value=10**15)
amounts = st.integers(min_value=0, max_value=10**15)
fees = st.integers(min_value=0, max_value=9_999)


# ---------------------------------------------------------------------------
# compute_amount_out
# ---------------------------------------------------------------------------

@settings(max_examples=300)
@given(reserves, reserves, amounts, amounts, fees)
def test_output_monotone_in_amount(r_in, r_out, x1, x2, fee):
    lo, hi = sorted((x1, x2))
    assert compute_amount_out(lo, r_in, r_out, fee) <= compute_amount_out(hi, r_in, r_out, fee)


@settings(max_examples=300)
@given(reserves, reserves, amounts, fees, fees)
def test_output_antitone_in_fee(r_in, r_out, x, f1, f2):
    lo, hi = sorted((f1, f2))
    assert compute_amount_out(x, r_in, r_out, lo) >= compute_amount_out(x, r_in, r_out, hi)


@settings(max_examples=300)
@given(reserves, reserves, amounts, fees)
def test_output_strictly_below_reserve(r_in, r_out, x, fee):
    assert compute_amount_out(x, r_in, r_out, fee) < r_out


@settings(max_examples=300)
@given(reserves, reserves, amounts, fees)
def test_product_never_decreases(r_in, r_out, x, fee):
    out = compute_amount_out(x, r_in, r_out, fee)
    assert (r_in + x) * (r_out - out) >= r_in * r_out


@settings(max_examples=200)
@given(reserves, reserves, amounts, fees)
def test_output_never_exceeds_exact_curve(r_in, r_out, x, fee):
    out = compute_amount_out(x, r_in, r_out, fee)
    eff = x * (10_000 - fee)
    # out <= eff * r_out / (r_in * 10_000 + eff) over the rationals
    assert out * (r_in * 10_000 + eff) <= eff * r_out


# ---------------------------------------------------------------------------
# Share accounting
# ---------------------------------------------------------------------------

@settings(max_examples=300)
@given(st.integers(min_value=1, max_value=U64_MAX), st.integers(min_value=1, max_value=U64_MAX))
def test_first_deposit_mints_root_minus_lock(a, b):
    root = math.isqrt(a * b)
    assume(root > 1000)
    q = quote_deposit(create_pool("mint-a", "mint-b", 30), a, b)
    assert q.shares_minted == root - 1000
    assert q.new_share_supply == root


@settings(max_examples=200)
@given(
    st.integers(min_value=2_000, max_value=10**12),
    st.integers(min_value=2_000, max_value=10**12),
    st.integers(min_value=1, max_value=10**12),
    st.integers(min_value=1, max_value=10**12),
)
def test_deposit_then_withdraw_never_profits(a0, b0, da, db):
    pool = create_pool("mint-a", "mint-b", 30)
    ledger = BalanceTable()
    ledger.credit("mint-a", "lp", a0)
    ledger.credit("mint-b", "lp", b0)
    ledger.credit("mint-a", "user", da)
    ledger.credit("mint-b", "user", db)
    shares = LPTable().registry(pool.pool_id)
    deposit(pool, "lp", a0, b0, ledger=ledger, shares=shares)

    try:
        minted = deposit(pool, "user", da, db, ledger=ledger, shares=shares)
        out_a, out_b = withdraw(pool, "user", minted, ledger=ledger, shares=shares)
    except PoolError:
        return

    assert ledger.balance_of("mint-a", "user") <= da
    assert ledger.balance_of("mint-b", "user") <= db
    assert pool.share_supply >= pool.minimum_liquidity
    assert out_a > 0 and out_b > 0
