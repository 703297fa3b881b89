"""
Service layer composing pools, ledgers and per-pool locking.
"""

from .pool_service import PoolService

__all__ = ["PoolService"]
