"""Webhook verification, event dispatch and the FastAPI receiver."""
from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import logging
from typing import Any, Awaitable, Callable

from fastapi import FastAPI, Request, Response

from ..config import AppConfig
from .app import GitHubApp, InstallationClient
from .events import EventKind, WebhookEvent, WebhookPayloadError, parse_event

logger = logging.getLogger(__name__)

Handler = Callable[[InstallationClient, Any], Awaitable[None]]
ErrorHook = Callable[["WebhookError"], None]

REQUIRED_HEADERS = ("x-github-event", "x-hub-signature-256", "x-github-delivery")
STILL_PROCESSING_TIMEOUT = 9.0


class WebhookError(Exception):
    """Base class for failures while verifying or dispatching a delivery."""

    event: WebhookEvent | None = None


class SignatureVerificationError(WebhookError):
    """The delivery's signature does not match the webhook secret."""


class WebhookHandlerError(WebhookError):
    """A single handler raised while processing an event."""

    def __init__(self, event: WebhookEvent, error: Exception) -> None:
        super().__init__(str(error))
        self.event = event
        self.error = error


class AggregateWebhookError(WebhookError):
    """Several handlers raised while processing the same event."""

    def __init__(self, event: WebhookEvent, errors: list[Exception]) -> None:
        super().__init__("\n".join(str(e) for e in errors))
        self.event = event
        self.errors = errors


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Verify a GitHub webhook HMAC-SHA256 signature.

    Args:
        payload: Raw request body bytes.
        signature: The X-Hub-Signature-256 header value (sha256=...).
        secret: The webhook secret configured in the GitHub App.

    Returns:
        True if the signature is valid, False otherwise.
    """
    if not signature.startswith("sha256="):
        return False
    expected = "sha256=" + hmac.new(
        secret.encode(), payload, hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(expected, signature)


class Webhooks:
    """Registry of event handlers keyed by EventKind."""

    def __init__(self, secret: str) -> None:
        self._secret = secret
        self._handlers: dict[EventKind, list[Handler]] = {kind: [] for kind in EventKind}
        self._error_hooks: list[ErrorHook] = []

    def on(self, kind: EventKind, handler: Handler) -> None:
        self._handlers[EventKind(kind)].append(handler)

    def on_error(self, hook: ErrorHook) -> None:
        self._error_hooks.append(hook)

    def handlers_for(self, kind: EventKind) -> list[Handler]:
        return list(self._handlers[kind])

    def _report(self, error: WebhookError) -> None:
        for hook in self._error_hooks:
            hook(error)

    def verify(self, payload: bytes, signature: str) -> None:
        """Check a delivery's signature against the webhook secret.

        Raises:
            SignatureVerificationError: If the signature does not match.
        """
        if not verify_signature(payload, signature, self._secret):
            error = SignatureVerificationError(
                "signature does not match event payload and secret"
            )
            self._report(error)
            raise error

    async def receive(self, event: WebhookEvent, client: InstallationClient) -> None:
        """Run every handler registered for the event's kind and wait for all.

        Raises:
            WebhookHandlerError: If exactly one handler failed.
            AggregateWebhookError: If more than one handler failed.
        """
        handlers = self._handlers[event.kind]
        if not handlers:
            return

        results = await asyncio.gather(
            *(handler(client, event) for handler in handlers),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, Exception)]
        if not errors:
            return

        error: WebhookError
        if len(errors) == 1:
            error = WebhookHandlerError(event, errors[0])
        else:
            error = AggregateWebhookError(event, errors)
        self._report(error)
        raise error


def create_app(
    config: AppConfig,
    github_app: GitHubApp,
    webhooks: Webhooks,
    still_processing_timeout: float = STILL_PROCESSING_TIMEOUT,
) -> FastAPI:
    """Create a FastAPI application that receives deliveries at config.path.

    Args:
        config: Listener settings; only ``path`` is used.
        github_app: Supplies an installation client for each delivery.
        webhooks: Verifies deliveries and dispatches them to handlers.
        still_processing_timeout: Seconds to wait for handlers before
            answering 202 and letting them finish in the background.

    Returns:
        A FastAPI application.
    """
    app = FastAPI(title="hookshot")
    pending: set[asyncio.Task] = set()

    def _finish_pending(task: asyncio.Task) -> None:
        pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Delivery failed after a 202 was sent: %s", task.exception())

    @app.post(config.path)
    async def webhook(request: Request) -> Response:
        """Verify a delivery, then hand it to the matching handlers."""
        missing = [name for name in REQUIRED_HEADERS if name not in request.headers]
        if missing:
            return Response(
                content=f"Required headers missing: {', '.join(missing)}\n",
                status_code=400,
            )

        content_type = request.headers.get("content-type", "")
        if not content_type.startswith("application/json"):
            return Response(
                content='Unsupported "Content-Type" header value. Must be "application/json"\n',
                status_code=415,
            )

        body = await request.body()
        try:
            webhooks.verify(body, request.headers["x-hub-signature-256"])
        except SignatureVerificationError as e:
            return Response(content=f"{e}\n", status_code=401)

        try:
            payload = json.loads(body)
        except ValueError:
            return Response(content="Invalid JSON\n", status_code=400)
        if not isinstance(payload, dict):
            return Response(content="Invalid JSON\n", status_code=400)

        name = request.headers["x-github-event"]
        delivery = request.headers["x-github-delivery"]
        try:
            event = parse_event(name, payload)
        except WebhookPayloadError as e:
            logger.warning("Rejected delivery %s: %s", delivery, e)
            return Response(content=f"{e}\n", status_code=400)

        if event is None:
            logger.debug("Ignoring %s event (delivery %s)", name, delivery)
            return Response(content="ok\n", status_code=200)

        client = github_app.installation_client(event.installation_id)
        task = asyncio.create_task(webhooks.receive(event, client))
        done, _ = await asyncio.wait({task}, timeout=still_processing_timeout)
        if not done:
            pending.add(task)
            task.add_done_callback(_finish_pending)
            return Response(content="still processing\n", status_code=202)

        try:
            task.result()
        except WebhookError as e:
            return Response(content=f"{e}\n", status_code=500)
        return Response(content="ok\n", status_code=200)

    return app
