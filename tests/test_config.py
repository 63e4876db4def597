"""Tests for config loader: YAML parsing, env var resolution, error cases."""

import os
import tempfile
from pathlib import Path

import pytest

from config import load_config


def _write_yaml(content: str) -> str:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        f.write(content)
        return f.name


def test_load_config_basic() -> None:
    path = _write_yaml(
        """
coin_id: Ethereum
planner:
  base_budget: 2500
  step_pct: 5
  depth_pct: 40
  include_extra_deep: true
  tolerance_pct: 3
sell:
  step_pct: 25
  levels: 6
prices:
  provider: mock
  mock_prices:
    Ethereum: 3000
breaker:
  failure_threshold: 3
  cooldown_ms: 2500
alerting:
  structured_logs: false
"""
    )
    try:
        cfg = load_config(path)
        assert cfg.coin_id == "ethereum"
        assert cfg.planner.base_budget == 2_500.0
        assert cfg.planner.step_pct == 5.0
        assert cfg.planner.depth_pct == 40.0
        assert cfg.planner.include_extra_deep is True
        assert cfg.planner.tolerance_pct == 3.0
        assert cfg.sell.step_pct == 25.0
        assert cfg.sell.levels == 6
        assert cfg.prices.provider == "mock"
        assert cfg.prices.mock_prices == {"ethereum": 3000.0}
        assert cfg.breaker.failure_threshold == 3
        assert cfg.breaker.cooldown_ms == 2500
        assert cfg.alerting.structured_logs is False
    finally:
        os.unlink(path)


def test_load_config_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write_yaml("coin_id: bitcoin\nprices:\n  api_base: https://example.invalid/v3\n")
    monkeypatch.setenv("COINGECKO_API_KEY", "test_key_123")
    monkeypatch.setenv("COINGECKO_API_BASE", "https://proxy.local/api/v3")
    try:
        cfg = load_config(path)
        assert cfg.prices.api_key == "test_key_123"
        assert cfg.prices.api_base == "https://proxy.local/api/v3"
    finally:
        os.unlink(path)


def test_load_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("COINGECKO_API_KEY", raising=False)
    monkeypatch.delenv("COINGECKO_API_BASE", raising=False)
    path = _write_yaml("planner: {}\n")
    try:
        cfg = load_config(path)
        assert cfg.coin_id == "bitcoin"
        assert cfg.planner.base_budget == 1_000.0
        assert cfg.planner.include_extra_deep is False
        assert cfg.planner.growth_pct_per_level == 25.0
        assert cfg.sell.tolerance == 0.05
        assert cfg.prices.provider == "coingecko"
        assert cfg.prices.api_base == "https://api.coingecko.com/api/v3"
        assert cfg.prices.api_key == ""
        assert cfg.prices.cache_ttl_seconds == 20.0
        assert cfg.breaker.failure_threshold == 5
        assert cfg.breaker.cooldown_ms == 10_000
        assert cfg.alerting.structured_logs is True
        assert cfg.alerting.webhook_url == ""
    finally:
        os.unlink(path)


def test_example_config_loads() -> None:
    example = Path(__file__).resolve().parent.parent / "config.example.yaml"
    cfg = load_config(example)
    assert cfg.coin_id == "bitcoin"
    assert cfg.sell.levels == 4


def test_load_config_missing_file() -> None:
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/path.yaml")


def test_load_config_not_a_mapping() -> None:
    path = _write_yaml("- just\n- a list\n")
    try:
        with pytest.raises(ValueError, match="YAML mapping"):
            load_config(path)
    finally:
        os.unlink(path)
