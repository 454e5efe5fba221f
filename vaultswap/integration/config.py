"""
Runtime configuration.

A config file is a YAML mapping, e.g.::

    delivery: shuffle
    seed: 7
    max_messages_per_run: 10000
    log_level: DEBUG
    protocol:
      fee_numerator: 997
      fee_denominator: 1000
      minimum_liquidity: 10
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..core.types import ProtocolConfig


DELIVERY_POLICIES = ("fifo", "shuffle")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_TOP_LEVEL_KEYS = {"protocol", "delivery", "seed", "max_messages_per_run", "log_level"}
_PROTOCOL_KEYS = {"fee_numerator", "fee_denominator", "minimum_liquidity"}


@dataclass(frozen=True)
class ExchangeConfig:
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    # "fifo": global send order. "shuffle": any non-empty (source, destination)
    # channel may go next, FIFO within a channel.
    delivery: str = "fifo"
    seed: Optional[int] = None
    max_messages_per_run: int = 10_000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.delivery not in DELIVERY_POLICIES:
            raise ValueError(f"delivery must be one of {DELIVERY_POLICIES}, got {self.delivery!r}")
        if self.seed is not None and (not isinstance(self.seed, int) or isinstance(self.seed, bool)):
            raise TypeError("seed must be an int or None")
        if not isinstance(self.max_messages_per_run, int) or self.max_messages_per_run <= 0:
            raise ValueError("max_messages_per_run must be a positive int")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")


def _require_int(obj: Mapping[str, Any], key: str) -> int:
    value = obj[key]
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{key} must be an integer")
    return value


def config_from_mapping(raw: Mapping[str, Any]) -> ExchangeConfig:
    if not isinstance(raw, Mapping):
        raise ValueError("config must be a mapping")
    unknown = set(raw) - _TOP_LEVEL_KEYS
    if unknown:
        raise ValueError(f"unknown config keys: {sorted(unknown)}")

    protocol_raw = raw.get("protocol") or {}
    if not isinstance(protocol_raw, Mapping):
        raise ValueError("protocol must be a mapping")
    unknown = set(protocol_raw) - _PROTOCOL_KEYS
    if unknown:
        raise ValueError(f"unknown protocol keys: {sorted(unknown)}")
    protocol = ProtocolConfig(**{k: _require_int(protocol_raw, k) for k in protocol_raw})

    kwargs: dict[str, Any] = {"protocol": protocol}
    if "delivery" in raw:
        kwargs["delivery"] = str(raw["delivery"]).lower()
    if raw.get("seed") is not None:
        kwargs["seed"] = _require_int(raw, "seed")
    if "max_messages_per_run" in raw:
        kwargs["max_messages_per_run"] = _require_int(raw, "max_messages_per_run")
    if "log_level" in raw:
        kwargs["log_level"] = str(raw["log_level"]).upper()
    return ExchangeConfig(**kwargs)


def load_config(path: Union[str, Path]) -> ExchangeConfig:
    """Load an ExchangeConfig from a YAML file; an empty file yields the defaults."""
    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if raw is None:
        return ExchangeConfig()
    return config_from_mapping(raw)
