from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import ConfigError, ExchangeConfig
from .errors import ExchangeError, ExchangeResult
from .outbound import build_url, post_json, post_json_and_parse

log = logging.getLogger(__name__)


def _make_session() -> requests.Session:
    """Create session with connection pooling and no transport-level retries."""
    s = requests.Session()
    retry = Retry(total=0, backoff_factor=0)
    s.mount("http://", HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10))
    s.mount("https://", HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10))
    return s


class RiskifiedClient:
    """Signed exchange client for one merchant (auth token + shop domain)."""

    def __init__(
        self,
        auth_token: str,
        shop_domain: str,
        host_url: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if not auth_token:
            raise ValueError("auth_token is required")
        if not shop_domain:
            raise ValueError("shop_domain is required")
        self.auth_token = auth_token
        self.shop_domain = shop_domain
        self.host_url = host_url
        self.timeout = timeout
        self.session = session or _make_session()

    @classmethod
    def from_config(cls, config: ExchangeConfig, session: Optional[requests.Session] = None) -> "RiskifiedClient":
        token = config.auth_token
        if not token:
            raise ConfigError(f"Auth token not configured ({config.token_env} missing)")
        if not config.shop_domain:
            raise ConfigError("Config 'shop_domain' must be a non-empty string.")
        return cls(token, config.shop_domain, config.host_url, session=session, timeout=config.timeout)

    def url_for(self, path: str) -> str:
        return build_url(self.host_url, path)

    def post(self, path: str, payload: Any) -> None:
        post_json(
            self.url_for(path), payload, self.auth_token, self.shop_domain,
            session=self.session, timeout=self.timeout,
        )

    def post_and_parse(self, path: str, payload: Any, response_type: Any) -> Any:
        return post_json_and_parse(
            self.url_for(path), payload, self.auth_token, self.shop_domain, response_type,
            session=self.session, timeout=self.timeout,
        )

    def exchange(self, path: str, payload: Any, response_type: Any) -> ExchangeResult:
        """Like post_and_parse, but returns the error as a value instead of raising it."""
        try:
            return ExchangeResult.success(self.post_and_parse(path, payload, response_type))
        except ExchangeError as exc:
            log.debug("Exchange with %s failed (%s)", path, exc.kind.value)
            return ExchangeResult.failure(exc)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "RiskifiedClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
