"""Webhook HTTP handlers — FastAPI route for inbound directory events.

The handler:
1. Reads the raw body
2. Hands it to WebhookRelay (parse, map, call the license API)
3. Maps the outcome to a status code

Status codes:
- 400 when the body cannot be read or parsed (whole batch rejected)
- 500 with a plain-text message when a license call fails
- 200 otherwise, including batches where every event was skipped
- 405 for any method other than POST (FastAPI routing)
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.requests import ClientDisconnect

from copilot_relay.tools.github_copilot import LicenseAPIError
from copilot_relay.webhooks.dispatcher import MalformedBatchError, RelayResult, WebhookRelay

logger = logging.getLogger(__name__)


def _log_webhook(status: str, result: RelayResult | None = None) -> None:
    """Audit log for webhook activity."""
    result = result or RelayResult()
    logger.info(
        "WEBHOOK_AUDIT status=%s envelopes=%d skipped=%d license_calls=%d",
        status,
        result.envelopes,
        result.skipped,
        result.license_calls,
    )


async def _handle_webhook(request: Request, relay: WebhookRelay) -> Response:
    """Run one webhook body through the relay.

    Returns 200 once every event is processed or skipped, 400 if the body
    cannot be read or parsed, 500 with a plain-text message if a license
    call fails. Nothing after a failed call is attempted.
    """
    start = time.time()

    try:
        body = await request.body()
    except ClientDisconnect:
        _log_webhook("read_failed")
        return PlainTextResponse("Error reading request body", status_code=400)

    try:
        result = await relay.handle(body)
    except MalformedBatchError as e:
        logger.warning("Rejected webhook batch: %s", e)
        _log_webhook("invalid_body")
        return PlainTextResponse("Error parsing request body", status_code=400)
    except LicenseAPIError as e:
        logger.error("License call failed (status=%s): %s", e.status_code, e)
        _log_webhook("license_failed")
        return PlainTextResponse(
            f"Error managing GitHub Copilot license: {e}", status_code=500
        )

    _log_webhook("processed", result)
    elapsed_ms = (time.time() - start) * 1000
    logger.debug("Webhook processed in %.1fms", elapsed_ms)
    return Response(status_code=200)


def register_webhook_routes(app: FastAPI, relay: WebhookRelay, path: str = "/webhook") -> None:
    """Register the webhook endpoint on the FastAPI app."""

    @app.post(path)
    async def directory_webhook(request: Request):
        """Receive a batch of directory user lifecycle events."""
        return await _handle_webhook(request, relay)

    logger.info("Webhook route registered: POST %s", path)
