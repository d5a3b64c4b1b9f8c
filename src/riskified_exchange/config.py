"""Client configuration loading."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

CONFIG_ENV = "RISKIFIED_EXCHANGE_CONFIG"
DEFAULT_CONFIG_PATH = "riskified_exchange.json"

ENVIRONMENT_URLS = {
    "sandbox": "https://sandbox.riskified.com",
    "production": "https://wh.riskified.com",
    "debug": "http://localhost:3000",
}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ExchangeConfig:
    shop_domain: str = ""
    environment: str = "sandbox"
    base_url: Optional[str] = None
    token_env: str = "RISKIFIED_AUTH_TOKEN"
    timeout: Optional[float] = None

    @property
    def auth_token(self) -> Optional[str]:
        """Get the shared secret from the environment variable named by token_env."""
        return os.environ.get(self.token_env)

    @property
    def host_url(self) -> str:
        if self.base_url:
            return self.base_url
        return ENVIRONMENT_URLS[self.environment]


def _expect_str(data: dict[str, Any], key: str, default: Optional[str]) -> Optional[str]:
    value = data.get(key, default)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"Config '{key}' must be a string.")
    return value.strip()


def _expect_timeout(data: dict[str, Any]) -> Optional[float]:
    value = data.get("timeout")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError("Config 'timeout' must be a positive number of seconds.")
    return float(value)


def load_exchange_config(path: Optional[str | Path] = None) -> ExchangeConfig:
    """
    Load exchange configuration from file or defaults.

    Priority:
    1. Explicit path argument
    2. RISKIFIED_EXCHANGE_CONFIG environment variable
    3. ./riskified_exchange.json
    4. Defaults
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV, DEFAULT_CONFIG_PATH)

    config_path = Path(path)
    if not config_path.exists():
        return ExchangeConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {config_path} must be an object.")
    exchange_data = data.get("exchange", {})
    if not isinstance(exchange_data, dict):
        raise ConfigError("Config 'exchange' must be an object.")

    environment = _expect_str(exchange_data, "environment", "sandbox")
    if environment not in ENVIRONMENT_URLS:
        raise ConfigError(
            f"Unknown environment '{environment}'. Must be one of: {', '.join(ENVIRONMENT_URLS)}"
        )

    return ExchangeConfig(
        shop_domain=_expect_str(exchange_data, "shop_domain", "") or "",
        environment=environment,
        base_url=_expect_str(exchange_data, "base_url", None) or None,
        token_env=_expect_str(exchange_data, "token_env", "RISKIFIED_AUTH_TOKEN") or "RISKIFIED_AUTH_TOKEN",
        timeout=_expect_timeout(exchange_data),
    )
