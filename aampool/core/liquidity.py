"""
Liquidity operations: create pool, deposit (add liquidity), withdraw (remove liquidity).

The ``quote_*`` functions are pure: they read a PoolState and return a typed
result without touching anything. ``deposit`` and ``withdraw`` run the quote,
validate the candidate post-state, pre-check the ledger / share registry, and
only then issue effects and commit the new reserves. A raised PoolError
therefore never leaves a partial update behind.

Share accounting (Uniswap-v2 style):
    first deposit:  minted = isqrt(amount_a * amount_b) - minimum_liquidity
    top-up:         minted = min(floor(used_a * S / reserve_a), floor(used_b * S / reserve_b))
    withdraw:       amount_x = floor(shares * reserve_x / S)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

from ..errors import (
    InsufficientInitialLiquidityError,
    InsufficientLiquidityError,
    InsufficientSharesError,
    LiquidityRatioMismatchError,
    PoolWouldBeDrainedError,
    SlippageExceededError,
    ZeroAmountError,
)
from ..state.balances import Account, Amount, Ledger, TokenId, require_balance
from ..state.lp import ShareRegistry
from ..state.pools import (
    MINIMUM_LIQUIDITY,
    PoolState,
    canonical_pair,
    compute_pool_id,
    validate_fee_rate,
)
from .invariants import require_all
from .math import (
    U128_BITS,
    checked_add,
    checked_mul,
    checked_sub,
    integer_sqrt,
    mul_div_floor,
    to_u64,
)


@dataclass(frozen=True)
class DepositQuote:
    amount_a_used: int
    amount_b_used: int
    shares_minted: int
    shares_locked: int
    new_reserve_a: int
    new_reserve_b: int
    new_share_supply: int


@dataclass(frozen=True)
class WithdrawQuote:
    shares_burned: int
    amount_a_out: int
    amount_b_out: int
    new_reserve_a: int
    new_reserve_b: int
    new_share_supply: int


def create_pool(
    token_a: TokenId,
    token_b: TokenId,
    fee_rate_bps: int,
    *,
    minimum_liquidity: Amount = MINIMUM_LIQUIDITY,
) -> PoolState:
    """
    Create a new, empty pool for a token pair.

    The pair is canonicalized, so create_pool(B, A) describes the same pool as
    create_pool(A, B). The fee rate is fixed for the lifetime of the pool.

    Raises:
        InvalidTokenError: If both tokens are the same
        InvalidFeeRateError: If fee_rate_bps is outside [0, 10000)
    """
    token_a, token_b = canonical_pair(token_a, token_b)
    validate_fee_rate(fee_rate_bps)
    return PoolState(
        pool_id=compute_pool_id(token_a, token_b),
        token_a=token_a,
        token_b=token_b,
        fee_rate_bps=fee_rate_bps,
        minimum_liquidity=minimum_liquidity,
    )


def _ratio_amounts(
    reserve_a: Amount,
    reserve_b: Amount,
    desired_a: Amount,
    desired_b: Amount,
) -> Tuple[Amount, Amount]:
    """Largest ratio-preserving (used_a, used_b) with used_a <= desired_a and used_b <= desired_b."""
    b_for_desired_a = mul_div_floor(desired_a, reserve_b, reserve_a)
    if b_for_desired_a <= desired_b:
        return desired_a, b_for_desired_a
    a_for_desired_b = mul_div_floor(desired_b, reserve_a, reserve_b)
    return a_for_desired_b, desired_b


def quote_deposit(
    pool: PoolState,
    desired_a: Amount,
    desired_b: Amount,
    *,
    min_a: Amount = 0,
    min_b: Amount = 0,
) -> DepositQuote:
    """
    Compute the outcome of a deposit without applying it.

    For an empty pool the desired amounts define the initial price and are used
    in full. For an active pool they are treated as maximums: the engine takes
    the largest amounts that preserve the current reserve ratio.

    Raises:
        ZeroAmountError: If either desired amount is zero
        InsufficientInitialLiquidityError: If isqrt(a * b) <= minimum_liquidity on first deposit
        InsufficientLiquidityError: If a top-up would mint zero shares
        LiquidityRatioMismatchError: If the ratio-preserving amounts fall below min_a / min_b
        ArithmeticOverflowError: If any amount leaves the u64 domain
    """
    if desired_a == 0 or desired_b == 0:
        raise ZeroAmountError(f"deposit amounts must be positive: ({desired_a}, {desired_b})")
    desired_a = to_u64(desired_a, name="desired_a")
    desired_b = to_u64(desired_b, name="desired_b")
    min_a = to_u64(min_a, name="min_a")
    min_b = to_u64(min_b, name="min_b")

    supply = pool.share_supply

    if supply == 0:
        root = integer_sqrt(checked_mul(desired_a, desired_b, bits=U128_BITS))
        if root <= pool.minimum_liquidity:
            raise InsufficientInitialLiquidityError(
                f"isqrt({desired_a} * {desired_b}) = {root} <= minimum liquidity {pool.minimum_liquidity}"
            )
        used_a, used_b = desired_a, desired_b
        minted = root - pool.minimum_liquidity
        locked = pool.minimum_liquidity
    else:
        used_a, used_b = _ratio_amounts(pool.reserve_a, pool.reserve_b, desired_a, desired_b)
        if used_a == 0 or used_b == 0:
            raise InsufficientLiquidityError(
                f"deposit too small for pool ratio: used=({used_a}, {used_b})"
            )
        if used_a < min_a or used_b < min_b:
            raise LiquidityRatioMismatchError(
                f"ratio-preserving amounts ({used_a}, {used_b}) below minimums ({min_a}, {min_b})"
            )
        minted = min(
            mul_div_floor(used_a, supply, pool.reserve_a),
            mul_div_floor(used_b, supply, pool.reserve_b),
        )
        if minted == 0:
            raise InsufficientLiquidityError("deposit would mint zero shares")
        locked = 0

    return DepositQuote(
        amount_a_used=used_a,
        amount_b_used=used_b,
        shares_minted=minted,
        shares_locked=locked,
        new_reserve_a=checked_add(pool.reserve_a, used_a),
        new_reserve_b=checked_add(pool.reserve_b, used_b),
        new_share_supply=checked_add(checked_add(supply, minted), locked),
    )


def deposit(
    pool: PoolState,
    account: Account,
    desired_a: Amount,
    desired_b: Amount,
    *,
    ledger: Ledger,
    shares: ShareRegistry,
    min_a: Amount = 0,
    min_b: Amount = 0,
) -> Amount:
    """
    Add liquidity and mint shares to ``account``.

    Returns:
        Number of shares credited to the depositor (the locked minimum is not included)

    Raises:
        InsufficientBalanceError: If the depositor cannot cover the used amounts
        (plus every error of ``quote_deposit``)
    """
    q = quote_deposit(pool, desired_a, desired_b, min_a=min_a, min_b=min_b)
    candidate = replace(
        pool,
        reserve_a=q.new_reserve_a,
        reserve_b=q.new_reserve_b,
        share_supply=q.new_share_supply,
    )
    require_all(candidate)
    require_balance(ledger, pool.token_a, account, q.amount_a_used)
    require_balance(ledger, pool.token_b, account, q.amount_b_used)

    ledger.debit_many(
        [
            (pool.token_a, account, q.amount_a_used),
            (pool.token_b, account, q.amount_b_used),
        ]
    )
    shares.mint(account, q.shares_minted)
    pool.apply(candidate)
    return q.shares_minted


def quote_withdraw(
    pool: PoolState,
    shares_in: Amount,
    *,
    min_a: Amount = 0,
    min_b: Amount = 0,
) -> WithdrawQuote:
    """
    Compute the outcome of burning ``shares_in`` without applying it.

    Raises:
        ZeroAmountError: If shares_in is zero
        InsufficientSharesError: If shares_in exceeds the share supply
        PoolWouldBeDrainedError: If the burn leaves 0 < supply < minimum_liquidity with reserves left
        InsufficientLiquidityError: If either output rounds down to zero
        SlippageExceededError: If an output is below min_a / min_b
    """
    if shares_in == 0:
        raise ZeroAmountError("shares to burn must be positive")
    shares_in = to_u64(shares_in, name="shares_in")
    min_a = to_u64(min_a, name="min_a")
    min_b = to_u64(min_b, name="min_b")

    supply = pool.share_supply
    if shares_in > supply:
        raise InsufficientSharesError(f"cannot burn {shares_in} shares of supply {supply}")

    amount_a = mul_div_floor(shares_in, pool.reserve_a, supply)
    amount_b = mul_div_floor(shares_in, pool.reserve_b, supply)
    new_reserve_a = checked_sub(pool.reserve_a, amount_a)
    new_reserve_b = checked_sub(pool.reserve_b, amount_b)
    new_supply = supply - shares_in

    if new_supply < pool.minimum_liquidity and (new_reserve_a > 0 or new_reserve_b > 0):
        raise PoolWouldBeDrainedError(
            f"burn leaves share supply {new_supply} below minimum liquidity {pool.minimum_liquidity}"
        )
    if amount_a == 0 or amount_b == 0:
        raise InsufficientLiquidityError(f"burn of {shares_in} shares returns ({amount_a}, {amount_b})")
    if amount_a < min_a or amount_b < min_b:
        raise SlippageExceededError(
            f"withdraw outputs ({amount_a}, {amount_b}) below minimums ({min_a}, {min_b})"
        )

    return WithdrawQuote(
        shares_burned=shares_in,
        amount_a_out=amount_a,
        amount_b_out=amount_b,
        new_reserve_a=new_reserve_a,
        new_reserve_b=new_reserve_b,
        new_share_supply=new_supply,
    )


def withdraw(
    pool: PoolState,
    account: Account,
    shares_in: Amount,
    *,
    ledger: Ledger,
    shares: ShareRegistry,
    min_a: Amount = 0,
    min_b: Amount = 0,
) -> Tuple[Amount, Amount]:
    """
    Burn ``shares_in`` of ``account`` and pay out the proportional reserves.

    Returns:
        Tuple of (amount_a, amount_b) credited to the account

    Raises:
        InsufficientSharesError: If the account holds fewer than shares_in
        (plus every error of ``quote_withdraw``)
    """
    if shares_in != 0 and shares.balance_of(account) < shares_in:
        raise InsufficientSharesError(
            f"{account} holds {shares.balance_of(account)} shares, needs {shares_in}"
        )
    q = quote_withdraw(pool, shares_in, min_a=min_a, min_b=min_b)
    candidate = replace(
        pool,
        reserve_a=q.new_reserve_a,
        reserve_b=q.new_reserve_b,
        share_supply=q.new_share_supply,
    )
    require_all(candidate)

    shares.burn(account, q.shares_burned)
    ledger.credit(pool.token_a, account, q.amount_a_out)
    ledger.credit(pool.token_b, account, q.amount_b_out)
    pool.apply(candidate)
    return q.amount_a_out, q.amount_b_out

