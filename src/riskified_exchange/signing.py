"""HMAC-SHA256 signing of exchange bodies."""
from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass

HMAC_HEADER_NAME = "X-RISKIFIED-HMAC-SHA256"
SHOP_DOMAIN_HEADER_NAME = "X-RISKIFIED-SHOP-DOMAIN"
ACCEPT_ENCODING = "gzip,deflate,sdch"


def _as_bytes(body: bytes | str) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def calc_hmac(body: bytes | str, secret: str) -> str:
    """
    Compute the lowercase hex HMAC-SHA256 of body keyed with secret.

    The secret is used as raw ASCII bytes (non-ASCII characters become '?').
    Text bodies are encoded as UTF-8 before hashing.
    """
    key = secret.encode("ascii", errors="replace")
    return hmac.new(key, _as_bytes(body), hashlib.sha256).hexdigest()


@dataclass(frozen=True)
class SignedHeaders:
    """Protocol headers derived from one exact body."""
    signature: str
    shop_domain: str
    accept_encoding: str = ACCEPT_ENCODING

    @classmethod
    def for_body(cls, body: bytes | str, secret: str, shop_domain: str) -> "SignedHeaders":
        return cls(signature=calc_hmac(body, secret), shop_domain=shop_domain)

    def as_dict(self) -> dict[str, str]:
        return {
            HMAC_HEADER_NAME: self.signature,
            SHOP_DOMAIN_HEADER_NAME: self.shop_domain,
            "Accept-Encoding": self.accept_encoding,
        }
