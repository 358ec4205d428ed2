"""Packaging strategy catalog."""

from lambda_pack.strategies.catalog import (
    DEFAULT_STRATEGIES,
    STRATEGY_IDS,
    CommandTemplate,
    Strategy,
    StrategyCatalog,
    StrategyId,
    build_default_catalog,
)

__all__ = [
    "DEFAULT_STRATEGIES",
    "STRATEGY_IDS",
    "CommandTemplate",
    "Strategy",
    "StrategyCatalog",
    "StrategyId",
    "build_default_catalog",
]
