"""
Engine configuration.

``EngineConfig`` is a frozen dataclass; ``load_config`` reads the same fields
from a YAML mapping, e.g.::

    minimum_liquidity: 1000
    default_fee_rate_bps: 30
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from .errors import ConfigError
from .state.pools import MAX_FEE_RATE_BPS, MINIMUM_LIQUIDITY


@dataclass(frozen=True)
class EngineConfig:
    # Shares locked forever by the first deposit into every pool.
    minimum_liquidity: int = MINIMUM_LIQUIDITY
    # Fee applied by PoolService.create_pool when the caller passes none.
    default_fee_rate_bps: int = 30

    def __post_init__(self) -> None:
        for f in fields(self):
            val = getattr(self, f.name)
            if not isinstance(val, int) or isinstance(val, bool):
                raise ConfigError(f"{f.name} must be an int, got {type(val).__name__}")
        if self.minimum_liquidity <= 0:
            raise ConfigError(f"minimum_liquidity must be positive: {self.minimum_liquidity}")
        if not (0 <= self.default_fee_rate_bps <= MAX_FEE_RATE_BPS):
            raise ConfigError(
                f"default_fee_rate_bps must be in [0, 10000): {self.default_fee_rate_bps}"
            )


CONFIG_KEYS: tuple[str, ...] = tuple(EngineConfig.__dataclass_fields__)


def config_from_mapping(obj: Mapping[str, Any]) -> EngineConfig:
    """Build an EngineConfig from a plain mapping. Unknown keys are rejected."""
    if not isinstance(obj, Mapping):
        raise ConfigError("config must be a mapping")
    unknown = sorted(set(obj) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(map(str, unknown))}")
    return EngineConfig(**dict(obj))


def load_config(path: Union[str, Path]) -> EngineConfig:
    """Load an EngineConfig from a YAML file. An empty file yields the defaults."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config {p}: {exc}") from exc
    try:
        obj = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {p}: {exc}") from exc
    if obj is None:
        return EngineConfig()
    return config_from_mapping(obj)
