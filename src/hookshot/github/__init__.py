"""GitHub App integration: authentication, typed events and the webhook receiver."""
from __future__ import annotations

from .app import GitHubApp, InstallationClient
from .events import CommitDetail, EventKind, PullRequestOpened, Push, parse_event
from .webhook import (
    AggregateWebhookError,
    SignatureVerificationError,
    WebhookError,
    WebhookHandlerError,
    Webhooks,
    create_app,
    verify_signature,
)

__all__ = [
    "GitHubApp",
    "InstallationClient",
    "CommitDetail",
    "EventKind",
    "PullRequestOpened",
    "Push",
    "parse_event",
    "AggregateWebhookError",
    "SignatureVerificationError",
    "WebhookError",
    "WebhookHandlerError",
    "Webhooks",
    "create_app",
    "verify_signature",
]
