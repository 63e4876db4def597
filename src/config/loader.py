"""
Config loader: YAML file -> frozen dataclass tree.

API secrets resolved from environment variables (COINGECKO_API_KEY).
COINGECKO_API_BASE overrides the provider URL. Config file holds only
non-secret values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_API_BASE = "https://api.coingecko.com/api/v3"


@dataclass(frozen=True)
class PlannerConfig:
    base_budget: float = 1_000.0
    step_pct: float = 10.0
    depth_pct: float = 70.0
    include_extra_deep: bool = False
    tolerance_pct: float = 5.0
    growth_pct_per_level: float = 25.0


@dataclass(frozen=True)
class SellConfig:
    step_pct: float = 50.0
    levels: int = 4
    sell_pct_of_remaining: float = 25.0
    tolerance: float = 0.05


@dataclass(frozen=True)
class PricesConfig:
    provider: str = "coingecko"  # "coingecko" | "mock"
    api_base: str = DEFAULT_API_BASE
    api_key: str = ""
    timeout_seconds: float = 10.0
    retries: int = 2
    cache_ttl_seconds: float = 20.0
    mock_prices: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class BreakerConfig:
    failure_threshold: int = 5
    cooldown_ms: int = 10_000


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    coin_id: str
    planner: PlannerConfig
    sell: SellConfig
    prices: PricesConfig
    breaker: BreakerConfig
    alerting: AlertingConfig = AlertingConfig()


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    Provider settings are resolved from environment variables:
      - COINGECKO_API_KEY   (optional demo/pro key)
      - COINGECKO_API_BASE  (overrides prices.api_base)
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    p_raw = raw.get("planner", {})
    planner_cfg = PlannerConfig(
        base_budget=float(p_raw.get("base_budget", 1_000.0)),
        step_pct=float(p_raw.get("step_pct", 10.0)),
        depth_pct=float(p_raw.get("depth_pct", 70.0)),
        include_extra_deep=bool(p_raw.get("include_extra_deep", False)),
        tolerance_pct=float(p_raw.get("tolerance_pct", 5.0)),
        growth_pct_per_level=float(p_raw.get("growth_pct_per_level", 25.0)),
    )

    s_raw = raw.get("sell", {})
    sell_cfg = SellConfig(
        step_pct=float(s_raw.get("step_pct", 50.0)),
        levels=int(s_raw.get("levels", 4)),
        sell_pct_of_remaining=float(s_raw.get("sell_pct_of_remaining", 25.0)),
        tolerance=float(s_raw.get("tolerance", 0.05)),
    )

    pr_raw = raw.get("prices", {})
    api_base = os.environ.get("COINGECKO_API_BASE", "").strip() or pr_raw.get("api_base", DEFAULT_API_BASE)
    prices_cfg = PricesConfig(
        provider=str(pr_raw.get("provider", "coingecko")),
        api_base=str(api_base),
        api_key=os.environ.get("COINGECKO_API_KEY", ""),
        timeout_seconds=float(pr_raw.get("timeout_seconds", 10.0)),
        retries=int(pr_raw.get("retries", 2)),
        cache_ttl_seconds=float(pr_raw.get("cache_ttl_seconds", 20.0)),
        mock_prices={str(k).lower(): float(v) for k, v in (pr_raw.get("mock_prices") or {}).items()},
    )

    b_raw = raw.get("breaker", {})
    breaker_cfg = BreakerConfig(
        failure_threshold=int(b_raw.get("failure_threshold", 5)),
        cooldown_ms=int(b_raw.get("cooldown_ms", 10_000)),
    )

    a_raw = raw.get("alerting", {})
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=str(a_raw.get("webhook_url", "")),
    )

    return AppConfig(
        coin_id=str(raw.get("coin_id", "bitcoin")).lower(),
        planner=planner_cfg,
        sell=sell_cfg,
        prices=prices_cfg,
        breaker=breaker_cfg,
        alerting=a_cfg,
    )
