"""Webhook event handlers.

Each handler makes its GitHub calls through the installation client it is
given and logs the outcome. Failed calls are logged and dropped; nothing is
retried and nothing propagates back to the receiver.
"""
from __future__ import annotations

import logging

import httpx

from .github.app import InstallationClient
from .github.events import CommitDetail, EventKind, PullRequestOpened, Push
from .github.webhook import AggregateWebhookError, WebhookError, Webhooks

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
PR_WELCOME_MESSAGE = (
    "Thanks for opening a new PR! Please follow our contributing guidelines "
    "to make your PR easier to review."
)


def _response_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and "message" in data:
        return str(data["message"])
    return response.text


def _log_request_error(error: Exception) -> None:
    """Log a failed API call, with status and message when GitHub answered."""
    if isinstance(error, httpx.HTTPStatusError):
        logger.error(
            "Error! Status: %s. Message: %s",
            error.response.status_code,
            _response_message(error.response),
        )
    else:
        logger.error("Error! %r", error, exc_info=error)


async def handle_pull_request_opened(
    client: InstallationClient, event: PullRequestOpened
) -> None:
    """Comment on a newly opened pull request with the welcome message."""
    logger.info("Received a pull request event for #%s", event.number)
    try:
        await client.request(
            "POST /repos/{owner}/{repo}/issues/{issue_number}/comments",
            owner=event.owner,
            repo=event.repo,
            issue_number=event.number,
            body=PR_WELCOME_MESSAGE,
            headers={"x-github-api-version": API_VERSION},
        )
    except Exception as e:
        _log_request_error(e)


async def handle_push(client: InstallationClient, event: Push) -> None:
    """Fetch and log every commit in a push, one request at a time.

    Commits are processed in payload order. A failed fetch is logged and the
    remaining commits are still fetched.
    """
    logger.info(
        "Received a push event for %s/%s (%s..%s, %d commits)",
        event.owner,
        event.repo,
        event.before[:7],
        event.after[:7],
        len(event.commits),
    )
    for sha in event.commits:
        try:
            data = await client.request(
                "GET /repos/{owner}/{repo}/commits/{ref}",
                owner=event.owner,
                repo=event.repo,
                ref=sha,
                headers={
                    "x-github-api-version": API_VERSION,
                    "Accept": "application/vnd.github+json",
                },
            )
            detail = CommitDetail.from_api(data or {"sha": sha})
        except Exception as e:
            _log_request_error(e)
            continue

        committer = f"{detail.committer_name} <{detail.committer_email}>"
        if detail.committer_login:
            committer += f" (@{detail.committer_login})"
        logger.info("Commit %s by %s", detail.short_sha or sha[:7], committer)
        logger.info("Message: %s", detail.message)


def log_webhook_error(error: WebhookError) -> None:
    """Error hook for the receiver: one line for aggregates, full detail otherwise."""
    if isinstance(error, AggregateWebhookError):
        logger.error("Error processing request: %s", error.event.kind.value)
    else:
        logger.error("%s: %s", type(error).__name__, error, exc_info=getattr(error, "error", None))


def register_handlers(webhooks: Webhooks) -> Webhooks:
    webhooks.on(EventKind.PULL_REQUEST_OPENED, handle_pull_request_opened)
    webhooks.on(EventKind.PUSH, handle_push)
    webhooks.on_error(log_webhook_error)
    return webhooks
