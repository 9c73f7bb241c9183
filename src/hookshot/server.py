"""Wires the configured app, the handlers and the HTTP listener together."""
from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from .config import AppConfig
from .github.app import GitHubApp
from .github.webhook import Webhooks, create_app
from .handlers import register_handlers

logger = logging.getLogger(__name__)


def build_app(config: AppConfig) -> FastAPI:
    github_app = GitHubApp(config.app_id, config.private_key, api_url=config.api_url)
    webhooks = register_handlers(Webhooks(config.webhook_secret))
    return create_app(config, github_app, webhooks)


class WebhookServer(uvicorn.Server):
    """uvicorn server that announces the webhook URL once its sockets are bound.

    uvicorn runs app startup before binding; a failed bind exits before the
    ready message is logged.
    """

    def __init__(self, config: AppConfig) -> None:
        super().__init__(
            uvicorn.Config(
                build_app(config),
                host=config.host,
                port=config.port,
                log_config=None,
                log_level=config.log_level.lower(),
            )
        )
        self.webhook_url = config.webhook_url

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            logger.info("Server is listening for events at: %s", self.webhook_url)
            logger.info("Press Ctrl + C to quit.")
