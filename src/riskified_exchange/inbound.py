"""Authentication of inbound webhook requests and signed webhook responses."""
from __future__ import annotations

import hmac
import io
import logging
from contextlib import closing
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Mapping, Optional

from requests.structures import CaseInsensitiveDict

from .codec import deserialize
from .errors import EmptyBodyError
from .signing import HMAC_HEADER_NAME, SignedHeaders, calc_hmac

log = logging.getLogger(__name__)

RESPONSE_CONTENT_TYPE = "text/html; charset=utf-8"


@dataclass
class InboundRequest:
    """
    An inbound webhook call as seen by the authenticator.

    The body stream is single-read: authenticate() consumes and closes it.
    """
    headers: CaseInsensitiveDict
    stream: Optional[BinaryIO]
    has_body: bool

    def __post_init__(self):
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

    @classmethod
    def from_bytes(cls, headers: Mapping[str, str], body: Optional[bytes]) -> "InboundRequest":
        if not body:
            return cls(headers=CaseInsensitiveDict(headers), stream=None, has_body=False)
        return cls(headers=CaseInsensitiveDict(headers), stream=io.BytesIO(body), has_body=True)


def signature_matches(provided: str, body: bytes, secret: str) -> bool:
    """Exact, case-sensitive, constant-time comparison against the recomputed HMAC."""
    expected = calc_hmac(body, secret)
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("ascii"))


def authenticate(request: InboundRequest, secret: str) -> tuple[bool, Optional[str]]:
    """
    Check the X-RISKIFIED-HMAC-SHA256 header of an inbound request.

    Returns (is_authentic, body_text). A request without a body is never
    authentic and yields (False, None). The body text is returned whatever the
    outcome because the stream cannot be read a second time.
    """
    if not request.has_body:
        return False, None

    if request.stream is None:
        msg = "Inbound request declared a body but carried no stream"
        log.error(msg)
        raise EmptyBodyError(msg)

    with closing(request.stream) as stream:
        raw = stream.read()
    content = raw.decode("utf-8", errors="replace")

    # Header lookup is cheap; skip the digest when there is nothing to compare.
    provided = request.headers.get(HMAC_HEADER_NAME)
    if provided is None:
        return False, content

    return signature_matches(provided, raw, secret), content


def authenticate_body(headers: Mapping[str, str], body: Optional[bytes], secret: str) -> bool:
    """Same check as authenticate() for callers that already hold the body bytes."""
    is_authentic, _ = authenticate(InboundRequest.from_bytes(headers, body), secret)
    return is_authentic


def parse_request_content(content: str, target_type: Any) -> Any:
    """Deserialize an already-authenticated request body."""
    return deserialize(content, target_type)


@dataclass
class WebhookResponse:
    """Response sink for a webhook call. `output` is closed once written."""
    headers: dict[str, str] = field(default_factory=dict)
    status_code: int = 200
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    output: BinaryIO = field(default_factory=io.BytesIO)


def write_signed_response(
    response: WebhookResponse,
    secret: str,
    shop_domain: str,
    body: str,
    succeeded: bool,
) -> None:
    """Sign body, set 200/400 and write it to the response output, then close the output."""
    with closing(response.output) as output:
        response.headers.update(SignedHeaders.for_body(body, secret, shop_domain).as_dict())
        response.content_type = RESPONSE_CONTENT_TYPE
        response.status_code = 200 if succeeded else 400

        buffer = body.encode("utf-8")
        response.content_length = len(buffer)
        output.write(buffer)
