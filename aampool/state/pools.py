"""
Pool state for two-asset constant-product pools.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Tuple

from ..errors import ArithmeticOverflowError, ConfigError, InvalidFeeRateError, InvalidTokenError
from .balances import Amount, TokenId

# Shares permanently locked at first deposit (Uniswap-v2 value).
MINIMUM_LIQUIDITY = 1000

MAX_FEE_RATE_BPS = 9_999

PairKey = Tuple[TokenId, TokenId]


class PoolStatus(Enum):
    """Pool lifecycle state, derived from the share supply."""
    EMPTY = "EMPTY"
    ACTIVE = "ACTIVE"


def canonical_pair(token_a: TokenId, token_b: TokenId) -> PairKey:
    """
    Return the pair in canonical (sorted) order.

    (A, B) and (B, A) map to the same key so that a pair can only ever have one pool.

    Raises:
        InvalidTokenError: If both identifiers are the same
    """
    if not isinstance(token_a, str) or not token_a:
        raise InvalidTokenError("token identifiers must be non-empty strings")
    if not isinstance(token_b, str) or not token_b:
        raise InvalidTokenError("token identifiers must be non-empty strings")
    if token_a == token_b:
        raise InvalidTokenError(f"pool tokens must be distinct: {token_a}")
    if token_a < token_b:
        return token_a, token_b
    return token_b, token_a


def validate_fee_rate(fee_rate_bps: int) -> int:
    if not isinstance(fee_rate_bps, int) or isinstance(fee_rate_bps, bool):
        raise InvalidFeeRateError("fee_rate_bps must be an int")
    if not (0 <= fee_rate_bps <= MAX_FEE_RATE_BPS):
        raise InvalidFeeRateError(f"fee_rate_bps must be in [0, 10000): {fee_rate_bps}")
    return fee_rate_bps


def compute_pool_id(token_a: TokenId, token_b: TokenId) -> str:
    """
    Deterministically compute a pool_id for a canonical pair.

    pool_id = sha256("pool_state" || token_a || token_b)
    """
    if token_a >= token_b:
        raise InvalidTokenError(f"tokens must be in canonical order: {token_a} < {token_b}")
    pool_id_data = b"pool_state" + token_a.encode("utf-8") + b"\x00" + token_b.encode("utf-8")
    return "0x" + hashlib.sha256(pool_id_data).hexdigest()


@dataclass
class PoolState:
    """
    State of a constant-product pool.

    Attributes:
        pool_id: Deterministic pool identifier (hex string)
        token_a: First token (must be < token_b lexicographically)
        token_b: Second token
        fee_rate_bps: Swap fee in basis points, fixed at creation
        reserve_a: Reserve of token_a held by the pool
        reserve_b: Reserve of token_b held by the pool
        share_supply: Total shares outstanding, including the locked minimum
        minimum_liquidity: Shares locked forever by the first deposit
    """
    pool_id: str
    token_a: TokenId
    token_b: TokenId
    fee_rate_bps: int
    reserve_a: Amount = 0
    reserve_b: Amount = 0
    share_supply: Amount = 0
    minimum_liquidity: Amount = MINIMUM_LIQUIDITY

    def __post_init__(self):
        """Validate construction-time invariants."""
        if self.token_a >= self.token_b:
            raise InvalidTokenError(
                f"tokens must be in canonical order: {self.token_a} < {self.token_b}"
            )
        validate_fee_rate(self.fee_rate_bps)
        if self.reserve_a < 0 or self.reserve_b < 0:
            raise ArithmeticOverflowError(
                f"reserves must be non-negative: ({self.reserve_a}, {self.reserve_b})"
            )
        if self.share_supply < 0:
            raise ArithmeticOverflowError(f"share supply must be non-negative: {self.share_supply}")
        if self.minimum_liquidity <= 0:
            raise ConfigError(f"minimum_liquidity must be positive: {self.minimum_liquidity}")

    @property
    def status(self) -> PoolStatus:
        return PoolStatus.ACTIVE if self.share_supply > 0 else PoolStatus.EMPTY

    @property
    def pair(self) -> PairKey:
        return self.token_a, self.token_b

    def has_token(self, token: TokenId) -> bool:
        return token == self.token_a or token == self.token_b

    def reserve_of(self, token: TokenId) -> Amount:
        """
        Get the reserve for one of the pool's tokens.

        Raises:
            InvalidTokenError: If token is not in this pool
        """
        if token == self.token_a:
            return self.reserve_a
        if token == self.token_b:
            return self.reserve_b
        raise InvalidTokenError(f"token {token} not in pool {self.pool_id}")

    def other_token(self, token: TokenId) -> TokenId:
        if token == self.token_a:
            return self.token_b
        if token == self.token_b:
            return self.token_a
        raise InvalidTokenError(f"token {token} not in pool {self.pool_id}")

    def constant_product(self) -> int:
        """k = reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b

    def apply(self, candidate: "PoolState") -> None:
        """
        Overwrite the live quantities with those of an already-validated candidate.

        Configuration (tokens, fee, lock) is immutable; only reserves and supply move.
        """
        if candidate.pool_id != self.pool_id:
            raise ValueError(f"candidate belongs to another pool: {candidate.pool_id}")
        self.reserve_a = candidate.reserve_a
        self.reserve_b = candidate.reserve_b
        self.share_supply = candidate.share_supply

    def __repr__(self) -> str:
        return (
            f"PoolState(pool_id={self.pool_id[:16]}..., "
            f"tokens=({self.token_a}, {self.token_b}), "
            f"reserves=({self.reserve_a}, {self.reserve_b}), "
            f"share_supply={self.share_supply}, fee_rate_bps={self.fee_rate_bps}, "
            f"status={self.status.value})"
        )


# Auto-derived from PoolState field definitions.
POOL_FIELD_NAMES: tuple[str, ...] = tuple(PoolState.__dataclass_fields__)

_STR_FIELDS = frozenset({"pool_id", "token_a", "token_b"})


def pool_to_dict(pool: PoolState) -> dict[str, Any]:
    """Serialize a PoolState to a plain dict."""
    return {name: getattr(pool, name) for name in POOL_FIELD_NAMES}


def pool_from_dict(d: Mapping[str, Any]) -> PoolState:
    """
    Deserialize a dict produced by ``pool_to_dict``.

    Raises KeyError on missing fields, TypeError on wrongly-typed values and
    ValueError if the stored pool_id does not match the pair.
    """
    kwargs: dict[str, Any] = {}
    for name in POOL_FIELD_NAMES:
        val = d[name]
        if name in _STR_FIELDS:
            if not isinstance(val, str):
                raise TypeError(f"pool field {name!r} must be str, got {type(val).__name__}")
            kwargs[name] = val
        else:
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"pool field {name!r} must be int, got {type(val).__name__}")
            kwargs[name] = int(val)
    pool = PoolState(**kwargs)
    if pool.pool_id != compute_pool_id(pool.token_a, pool.token_b):
        raise ValueError(f"pool_id does not match pair: {pool.pool_id}")
    return pool
