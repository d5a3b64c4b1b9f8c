"""Signed outbound POSTs to the Riskified service and response handling."""
from __future__ import annotations

import logging
from contextlib import closing
from typing import Any, NoReturn, Optional
from urllib.parse import urljoin

import requests
from prometheus_client import Counter, Histogram
from pydantic import BaseModel

from . import __version__
from .codec import deserialize, serialize
from .errors import EmptyBodyError, ExchangeError, NetworkError, ServerError
from .signing import SignedHeaders

log = logging.getLogger(__name__)

SERVER_API_VERSION = 2
USER_AGENT = f"Riskified.SDK_PY/{__version__}"
ACCEPT = f"application/vnd.riskified.com; version={SERVER_API_VERSION}"
CONTENT_TYPE = "application/json"

# Metrics
EXCHANGE_REQUESTS_TOTAL = Counter(
    "riskified_exchange_requests_total",
    "Total outbound exchange requests",
    ["outcome"]
)

EXCHANGE_LATENCY = Histogram(
    "riskified_exchange_latency_seconds",
    "Time until response headers are received"
)


class ErrorMessage(BaseModel):
    message: str


class ErrorEnvelope(BaseModel):
    """Error body shape: {"error": {"message": "..."}}."""
    error: ErrorMessage


def build_url(host_url: str, relative_path: str) -> str:
    return urljoin(host_url, relative_path)


STATUS_NAMES = {
    100: "Continue", 101: "SwitchingProtocols", 102: "Processing", 103: "EarlyHints",
    200: "OK", 201: "Created", 202: "Accepted", 203: "NonAuthoritativeInformation",
    204: "NoContent", 205: "ResetContent", 206: "PartialContent", 207: "MultiStatus",
    208: "AlreadyReported", 226: "IMUsed",
    300: "MultipleChoices", 301: "MovedPermanently", 302: "Found", 303: "SeeOther",
    304: "NotModified", 305: "UseProxy", 306: "Unused", 307: "TemporaryRedirect",
    308: "PermanentRedirect",
    400: "BadRequest", 401: "Unauthorized", 402: "PaymentRequired", 403: "Forbidden",
    404: "NotFound", 405: "MethodNotAllowed", 406: "NotAcceptable",
    407: "ProxyAuthenticationRequired", 408: "RequestTimeout", 409: "Conflict", 410: "Gone",
    411: "LengthRequired", 412: "PreconditionFailed", 413: "RequestEntityTooLarge",
    414: "RequestUriTooLong", 415: "UnsupportedMediaType", 416: "RequestedRangeNotSatisfiable",
    417: "ExpectationFailed", 421: "MisdirectedRequest", 422: "UnprocessableEntity",
    423: "Locked", 424: "FailedDependency", 426: "UpgradeRequired", 428: "PreconditionRequired",
    429: "TooManyRequests", 431: "RequestHeaderFieldsTooLarge", 451: "UnavailableForLegalReasons",
    500: "InternalServerError", 501: "NotImplemented", 502: "BadGateway", 503: "ServiceUnavailable",
    504: "GatewayTimeout", 505: "HttpVersionNotSupported", 506: "VariantAlsoNegotiates",
    507: "InsufficientStorage", 508: "LoopDetected", 510: "NotExtended",
    511: "NetworkAuthenticationRequired",
}


def status_token(status_code: int) -> str:
    """Render a status code by its fixed wire name (404 -> NotFound); unlisted codes render as the number."""
    return STATUS_NAMES.get(status_code, str(status_code))


def build_request_headers(body: bytes, auth_token: str, shop_domain: str) -> dict[str, str]:
    headers = SignedHeaders.for_body(body, auth_token, shop_domain).as_dict()
    headers["Content-Type"] = CONTENT_TYPE
    headers["User-Agent"] = USER_AGENT
    headers["Accept"] = ACCEPT
    return headers


def post_object(
    url: str,
    payload: Any,
    auth_token: str,
    shop_domain: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """
    Serialize, sign and POST payload; return the response with its body unread.

    Raises:
        SerializationError: payload is not JSON-serializable (nothing was sent)
        NetworkError: no HTTP response was received
        ServerError: the response status is outside 2xx
    """
    body = serialize(payload)
    headers = build_request_headers(body, auth_token, shop_domain)
    sender = session if session is not None else requests

    try:
        with EXCHANGE_LATENCY.time():
            response = sender.post(str(url), data=body, headers=headers, stream=True, timeout=timeout)
    except requests.RequestException as exc:
        if exc.response is not None:
            raise_for_error_response(exc.response, cause=exc)
        msg = f"There was an error connecting to the Riskified server: {exc}"
        log.error(msg, exc_info=exc)
        EXCHANGE_REQUESTS_TOTAL.labels(outcome="network_error").inc()
        raise NetworkError(msg) from exc

    if not 200 <= response.status_code < 300:
        raise_for_error_response(response)

    EXCHANGE_REQUESTS_TOTAL.labels(outcome="success").inc()
    return response


def _empty_body() -> NoReturn:
    msg = "Unknown data from Riskified server - ignoring it. Body was null"
    log.error(msg)
    raise EmptyBodyError(msg)


def read_body(response: requests.Response) -> str:
    """Read the whole body as UTF-8 text and close the response."""
    if response.raw is None:
        _empty_body()

    with closing(response):
        try:
            content = response.content
        except requests.RequestException as exc:
            msg = f"Connection failed while reading the response body: {exc}"
            log.error(msg, exc_info=exc)
            raise NetworkError(msg) from exc

    if content is None:
        _empty_body()
    return content.decode("utf-8", errors="replace")


def parse_response(response: requests.Response, target_type: Any) -> Any:
    """Read the body to completion, close the response and parse it into target_type."""
    body = read_body(response)
    return deserialize(body, target_type)


def raise_for_error_response(response: requests.Response, cause: Optional[BaseException] = None) -> NoReturn:
    """Turn a non-2xx response into a logged ServerError."""
    status = response.status_code
    try:
        envelope = parse_response(response, ErrorEnvelope)
        error = f"{envelope.error.message} (Http Status code: {status_token(status)})"
    except ExchangeError as parse_exc:
        if 500 <= status < 600:
            error = f"Server side error ({status}): "
        elif 400 <= status < 500:
            error = f"Client side error ({status}): "
        else:
            error = f"Error occurred. Http status code {status_token(status)}: "
        error += parse_exc.message
        cause = cause or parse_exc

    log.error(error, exc_info=cause)
    EXCHANGE_REQUESTS_TOTAL.labels(outcome="server_error").inc()
    raise ServerError(error, status_code=status) from cause


def post_json(
    url: str,
    payload: Any,
    auth_token: str,
    shop_domain: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> None:
    """POST payload and discard the (successful) response body."""
    response = post_object(url, payload, auth_token, shop_domain, session=session, timeout=timeout)
    response.close()


def post_json_and_parse(
    url: str,
    payload: Any,
    auth_token: str,
    shop_domain: str,
    response_type: Any,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> Any:
    """POST payload and parse the response body into response_type."""
    response = post_object(url, payload, auth_token, shop_domain, session=session, timeout=timeout)
    return parse_response(response, response_type)
