"""FastAPI application for the Copilot license relay.

Run with ``copilot-relay`` (or ``python -m copilot_relay.serve``); settings
come from the environment, see copilot_relay/config.py.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from copilot_relay.config import Settings, get_settings
from copilot_relay.tools.github_copilot import CopilotLicenseClient
from copilot_relay.webhooks.dispatcher import WebhookRelay
from copilot_relay.webhooks.handlers import register_webhook_routes

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    license_client: CopilotLicenseClient | None = None,
) -> FastAPI:
    """Build the app. The license client is closed when the app shuts down."""
    settings = settings or get_settings()
    license_client = license_client or CopilotLicenseClient(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Copilot license relay starting (mode=%s, api=%s)",
            license_client.mode,
            settings.github_api_url,
        )
        yield
        await license_client.aclose()

    app = FastAPI(title="Copilot License Relay", lifespan=lifespan)
    register_webhook_routes(app, WebhookRelay(license_client), settings.webhook_path)

    @app.get("/health")
    async def health():
        return {"status": "ok", "license_api_mode": license_client.mode}

    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
