"""
Constant-product swap pricing and execution.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per swap
- Invariant: after each swap, reserve_in' * reserve_out' >= reserve_in * reserve_out

Pricing keeps the fee-adjusted input scaled by 10_000 so no precision is lost
before the final division:

    in_after_fee = amount_in * (10_000 - fee_rate_bps)
    amount_out   = floor(in_after_fee * reserve_out / (reserve_in * 10_000 + in_after_fee))

Floor rounding means the pool never pays out more than the exact curve allows.
The full ``amount_in`` (fee included) is added to ``reserve_in``, so the fee
accrues to liquidity providers.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from ..errors import (
    InsufficientLiquidityError,
    InsufficientReservesError,
    InvalidTokenError,
    InvariantViolationError,
    SameTokenSwapError,
    SlippageExceededError,
    ZeroAmountError,
)
from ..state.balances import Account, Amount, Ledger, TokenId, require_balance
from ..state.pools import PoolState, validate_fee_rate
from .invariants import require_all
from .math import (
    BPS_DENOMINATOR,
    U128_BITS,
    checked_add,
    checked_mul,
    checked_sub,
    mul_div_floor,
    to_u64,
)


@dataclass(frozen=True)
class SwapQuote:
    input_token: TokenId
    output_token: TokenId
    amount_in: int
    amount_in_after_fee: int  # scaled by BPS_DENOMINATOR
    fee_amount: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def compute_amount_out(
    amount_in: Amount,
    reserve_in: Amount,
    reserve_out: Amount,
    fee_rate_bps: int,
) -> Amount:
    """
    Output of an exact-in swap against (reserve_in, reserve_out).

    Pure pricing only: no drain, dust or slippage checks. Returns 0 for a zero input.
    """
    amount_in = to_u64(amount_in, name="amount_in")
    reserve_in = to_u64(reserve_in, name="reserve_in")
    reserve_out = to_u64(reserve_out, name="reserve_out")
    validate_fee_rate(fee_rate_bps)
    if amount_in == 0:
        return 0

    in_after_fee = checked_mul(amount_in, BPS_DENOMINATOR - fee_rate_bps, bits=U128_BITS)
    denominator = checked_add(
        checked_mul(reserve_in, BPS_DENOMINATOR, bits=U128_BITS),
        in_after_fee,
        bits=U128_BITS,
    )
    return mul_div_floor(in_after_fee, reserve_out, denominator)


def compute_fee_amount(amount_in: Amount, fee_rate_bps: int) -> Amount:
    """Nominal fee retained by the pool: floor(amount_in * fee_rate_bps / 10_000)."""
    return mul_div_floor(to_u64(amount_in, name="amount_in"), validate_fee_rate(fee_rate_bps), BPS_DENOMINATOR)


def quote_swap(
    pool: PoolState,
    input_token: TokenId,
    amount_in: Amount,
    *,
    output_token: Optional[TokenId] = None,
) -> SwapQuote:
    """
    Compute an exact-in swap without applying it.

    Args:
        pool: Current pool state
        input_token: Token paid in (must be one of the pool's tokens)
        amount_in: Exact input amount, fee included
        output_token: Optional explicit output token (must be the other pool token)

    Returns:
        SwapQuote with the output amount and post-swap reserves

    Raises:
        ZeroAmountError: If amount_in is zero
        InvalidTokenError: If a token does not belong to the pool
        SameTokenSwapError: If output_token equals input_token
        InsufficientReservesError: If amount_out would be >= reserve_out
        InsufficientLiquidityError: If the trade is too small to produce any output
        InvariantViolationError: If the post-swap product would decrease
    """
    if amount_in == 0:
        raise ZeroAmountError("amount_in must be positive")
    amount_in = to_u64(amount_in, name="amount_in")
    if output_token is not None and output_token == input_token:
        raise SameTokenSwapError(f"cannot swap {input_token} for itself")
    if not pool.has_token(input_token):
        raise InvalidTokenError(f"token {input_token} not in pool {pool.pool_id}")
    resolved_out = pool.other_token(input_token)
    if output_token is not None and output_token != resolved_out:
        raise InvalidTokenError(f"token {output_token} not in pool {pool.pool_id}")

    reserve_in = pool.reserve_of(input_token)
    reserve_out = pool.reserve_of(resolved_out)

    amount_out = compute_amount_out(amount_in, reserve_in, reserve_out, pool.fee_rate_bps)
    if amount_out >= reserve_out:
        raise InsufficientReservesError(
            f"amount_out ({amount_out}) would drain reserve_out ({reserve_out})"
        )
    if amount_out == 0:
        raise InsufficientLiquidityError(f"amount_in {amount_in} too small to produce output")

    new_reserve_in = checked_add(reserve_in, amount_in)
    new_reserve_out = checked_sub(reserve_out, amount_out)

    k_before = reserve_in * reserve_out
    k_after = new_reserve_in * new_reserve_out
    if k_after < k_before:
        raise InvariantViolationError(["inv_k_non_decreasing"])

    return SwapQuote(
        input_token=input_token,
        output_token=resolved_out,
        amount_in=amount_in,
        amount_in_after_fee=amount_in * (BPS_DENOMINATOR - pool.fee_rate_bps),
        fee_amount=compute_fee_amount(amount_in, pool.fee_rate_bps),
        amount_out=amount_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def swap(
    pool: PoolState,
    account: Account,
    input_token: TokenId,
    amount_in: Amount,
    minimum_amount_out: Amount,
    *,
    ledger: Ledger,
    output_token: Optional[TokenId] = None,
) -> Amount:
    """
    Swap ``amount_in`` of ``input_token`` for the pool's other token.

    Returns:
        Amount of the output token credited to ``account``

    Raises:
        SlippageExceededError: If amount_out < minimum_amount_out
        InsufficientBalanceError: If the account cannot pay amount_in
        (plus every error of ``quote_swap``)
    """
    minimum_amount_out = to_u64(minimum_amount_out, name="minimum_amount_out")
    q = quote_swap(pool, input_token, amount_in, output_token=output_token)
    if q.amount_out < minimum_amount_out:
        raise SlippageExceededError(
            f"amount_out ({q.amount_out}) < minimum_amount_out ({minimum_amount_out})"
        )

    if input_token == pool.token_a:
        candidate = replace(pool, reserve_a=q.new_reserve_in, reserve_b=q.new_reserve_out)
    else:
        candidate = replace(pool, reserve_a=q.new_reserve_out, reserve_b=q.new_reserve_in)
    require_all(candidate)
    require_balance(ledger, q.input_token, account, q.amount_in)

    ledger.debit(q.input_token, account, q.amount_in)
    ledger.credit(q.output_token, account, q.amount_out)
    pool.apply(candidate)
    return q.amount_out
