"""
Configuration loader.

App config: reads config.yaml, resolves env vars for provider secrets.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    BreakerConfig,
    PlannerConfig,
    PricesConfig,
    SellConfig,
    load_config,
)

__all__ = [
    "AlertingConfig",
    "AppConfig",
    "BreakerConfig",
    "load_config",
    "PlannerConfig",
    "PricesConfig",
    "SellConfig",
]
