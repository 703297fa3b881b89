"""Invariant checkers for ``PoolState``.

Each function returns True when the invariant holds, and ``check_all()``
returns the list of violated invariant IDs (empty = all pass). The engines run
``check_all`` on every candidate post-state before issuing any effect.

The swap-specific "k must not decrease" rule compares two states and lives in
``swap.py``; everything here is a property of a single state.
"""

from __future__ import annotations

from typing import Callable

from ..errors import InvariantViolationError
from ..state.pools import MAX_FEE_RATE_BPS, PoolState
from .math import U64_BITS, fits


def inv_tokens_canonical(p: PoolState) -> bool:
    return p.token_a < p.token_b


def inv_fee_in_range(p: PoolState) -> bool:
    return 0 <= p.fee_rate_bps <= MAX_FEE_RATE_BPS


def inv_reserves_non_negative(p: PoolState) -> bool:
    return p.reserve_a >= 0 and p.reserve_b >= 0


def inv_amounts_fit_u64(p: PoolState) -> bool:
    return all(fits(v, U64_BITS) for v in (p.reserve_a, p.reserve_b, p.share_supply))


def inv_empty_pool_zeroed(p: PoolState) -> bool:
    if p.share_supply > 0:
        return True
    return p.reserve_a == 0 and p.reserve_b == 0


def inv_active_pool_funded(p: PoolState) -> bool:
    if p.share_supply == 0:
        return True
    return p.reserve_a > 0 and p.reserve_b > 0


def inv_supply_covers_lock(p: PoolState) -> bool:
    if p.share_supply == 0:
        return True
    return p.share_supply >= p.minimum_liquidity


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[PoolState], bool]] = {
    "inv_tokens_canonical": inv_tokens_canonical,
    "inv_fee_in_range": inv_fee_in_range,
    "inv_reserves_non_negative": inv_reserves_non_negative,
    "inv_amounts_fit_u64": inv_amounts_fit_u64,
    "inv_empty_pool_zeroed": inv_empty_pool_zeroed,
    "inv_active_pool_funded": inv_active_pool_funded,
    "inv_supply_covers_lock": inv_supply_covers_lock,
}


def check_all(pool: PoolState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(pool)
    ]


def require_all(pool: PoolState) -> None:
    """Like ``check_all()`` but raises ``InvariantViolationError`` on any violation."""
    violations = check_all(pool)
    if violations:
        raise InvariantViolationError(violations)
