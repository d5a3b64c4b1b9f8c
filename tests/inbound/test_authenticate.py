"""Test inbound webhook authentication."""
import io
from unittest.mock import patch

import pytest
from pydantic import BaseModel

from riskified_exchange.errors import DeserializationError, EmptyBodyError
from riskified_exchange.inbound import (
    InboundRequest,
    authenticate,
    authenticate_body,
    parse_request_content,
)
from riskified_exchange.signing import calc_hmac

SECRET = "secret"
BODY = b'{"order":{"id":"1"}}'
SIGNATURE = "7c6c102f95e9c475910f47362d3533ed4795dedb3dda965a152422313d6a0e2d"


class Notification(BaseModel):
    id: str
    status: str


def make_request(body: bytes | None, headers: dict | None = None) -> InboundRequest:
    return InboundRequest.from_bytes(headers or {}, body)


def test_valid_signature_is_authentic():
    request = make_request(BODY, {"X-RISKIFIED-HMAC-SHA256": SIGNATURE})

    is_authentic, content = authenticate(request, SECRET)

    assert is_authentic is True
    assert content == BODY.decode("utf-8")


def test_request_without_body_is_never_authentic():
    """No body means (False, None) whatever the headers say."""
    request = make_request(None, {"X-RISKIFIED-HMAC-SHA256": calc_hmac(b"", SECRET)})

    assert authenticate(request, SECRET) == (False, None)


def test_empty_body_counts_as_no_body():
    assert authenticate(make_request(b""), SECRET) == (False, None)


def test_missing_header_skips_digest():
    """Without the signature header the HMAC is never computed."""
    request = make_request(BODY, {"Content-Type": "application/json"})

    with patch("riskified_exchange.inbound.calc_hmac", wraps=calc_hmac) as mock_calc:
        is_authentic, content = authenticate(request, SECRET)

    assert is_authentic is False
    assert content == BODY.decode("utf-8")
    assert mock_calc.call_count == 0


def test_present_header_computes_digest_once():
    request = make_request(BODY, {"X-RISKIFIED-HMAC-SHA256": SIGNATURE})

    with patch("riskified_exchange.inbound.calc_hmac", wraps=calc_hmac) as mock_calc:
        authenticate(request, SECRET)

    assert mock_calc.call_count == 1


def test_wrong_signature_returns_body():
    request = make_request(BODY, {"X-RISKIFIED-HMAC-SHA256": "0" * 64})

    is_authentic, content = authenticate(request, SECRET)

    assert is_authentic is False
    assert content == BODY.decode("utf-8")


def test_signature_comparison_is_case_sensitive():
    request = make_request(BODY, {"X-RISKIFIED-HMAC-SHA256": SIGNATURE.upper()})

    is_authentic, _ = authenticate(request, SECRET)

    assert is_authentic is False


def test_wrong_secret_is_not_authentic():
    request = make_request(BODY, {"X-RISKIFIED-HMAC-SHA256": SIGNATURE})

    is_authentic, _ = authenticate(request, "another-secret")

    assert is_authentic is False


def test_header_name_lookup_is_case_insensitive():
    request = make_request(BODY, {"x-riskified-hmac-sha256": SIGNATURE})

    is_authentic, _ = authenticate(request, SECRET)

    assert is_authentic is True


def test_non_ascii_header_value_does_not_raise():
    request = make_request(BODY, {"X-RISKIFIED-HMAC-SHA256": "é" * 64})

    is_authentic, _ = authenticate(request, SECRET)

    assert is_authentic is False


def test_body_stream_is_closed_after_read():
    stream = io.BytesIO(BODY)
    request = InboundRequest(headers={"X-RISKIFIED-HMAC-SHA256": SIGNATURE}, stream=stream, has_body=True)

    authenticate(request, SECRET)

    assert stream.closed


def test_declared_body_without_stream_raises():
    request = InboundRequest(headers={}, stream=None, has_body=True)

    with pytest.raises(EmptyBodyError):
        authenticate(request, SECRET)


def test_authenticate_body_helper():
    assert authenticate_body({"X-RISKIFIED-HMAC-SHA256": SIGNATURE}, BODY, SECRET) is True
    assert authenticate_body({"X-RISKIFIED-HMAC-SHA256": SIGNATURE}, b"{}", SECRET) is False
    assert authenticate_body({"X-RISKIFIED-HMAC-SHA256": SIGNATURE}, None, SECRET) is False


def test_parse_request_content():
    assert parse_request_content('{"id":"1","status":"approved"}', Notification) == Notification(
        id="1", status="approved"
    )


def test_parse_request_content_failure():
    with pytest.raises(DeserializationError) as exc_info:
        parse_request_content('{"id":"1"}', Notification)

    assert exc_info.value.target_type == "Notification"
