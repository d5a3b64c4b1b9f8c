"""FastAPI receiver for signed webhook notifications."""
from __future__ import annotations

import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool

from . import __version__
from .inbound import RESPONSE_CONTENT_TYPE, InboundRequest, authenticate
from .signing import SignedHeaders

log = logging.getLogger(__name__)

UNAUTHENTICATED_BODY = "Request could not be authenticated"

NotificationHandler = Callable[[str], str]


def signed_response(secret: str, shop_domain: str, body: str, succeeded: bool) -> Response:
    """Framework counterpart of inbound.write_signed_response."""
    return Response(
        content=body.encode("utf-8"),
        status_code=200 if succeeded else 400,
        headers=SignedHeaders.for_body(body, secret, shop_domain).as_dict(),
        media_type=RESPONSE_CONTENT_TYPE,
    )


def create_notifications_app(
    auth_token: str,
    shop_domain: str,
    handler: NotificationHandler,
    path: str = "/notifications",
) -> FastAPI:
    """
    Build an app that authenticates notifications and answers with signed responses.

    handler receives the authenticated body text and returns the response text.
    It runs in the threadpool, so it may block. Any exception it raises becomes
    a signed 400 carrying the exception message.
    """
    app = FastAPI(title="Riskified notifications", version=__version__)

    @app.post(path)
    async def receive_notification(request: Request) -> Response:
        raw = await request.body()
        is_authentic, content = authenticate(InboundRequest.from_bytes(request.headers, raw), auth_token)

        if not is_authentic:
            log.warning("Rejected unauthenticated notification from %s",
                        request.client.host if request.client else "unknown")
            return signed_response(auth_token, shop_domain, UNAUTHENTICATED_BODY, succeeded=False)

        try:
            reply = await run_in_threadpool(handler, content)
        except Exception as exc:
            log.error("Notification handler failed", exc_info=exc)
            return signed_response(auth_token, shop_domain, str(exc), succeeded=False)

        return signed_response(auth_token, shop_domain, reply, succeeded=True)

    return app
