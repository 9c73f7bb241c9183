"""Typed webhook events understood by the app."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar


class EventKind(str, Enum):
    """Every webhook event the app reacts to.

    Values are the ``<event>.<action>`` names GitHub deliveries resolve to.
    """

    PULL_REQUEST_OPENED = "pull_request.opened"
    PUSH = "push"


class WebhookPayloadError(ValueError):
    """A recognised event arrived with a payload missing required fields."""


@dataclass(frozen=True)
class PullRequestOpened:
    kind: ClassVar[EventKind] = EventKind.PULL_REQUEST_OPENED

    owner: str
    repo: str
    number: int
    installation_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True)
class Push:
    """A push; ``commits`` holds the SHAs included in this push, oldest first."""

    kind: ClassVar[EventKind] = EventKind.PUSH

    owner: str
    repo: str
    before: str
    after: str
    commits: tuple[str, ...] = ()
    installation_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


WebhookEvent = PullRequestOpened | Push


@dataclass(frozen=True)
class CommitDetail:
    """Commit data fetched from ``GET /repos/{owner}/{repo}/commits/{ref}``."""

    sha: str
    message: str
    committer_name: str
    committer_email: str
    committer_login: str | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CommitDetail:
        commit = data.get("commit") or {}
        committer = commit.get("committer") or {}
        account = data.get("committer") or {}
        return cls(
            sha=data.get("sha", ""),
            message=commit.get("message", ""),
            committer_name=committer.get("name", ""),
            committer_email=committer.get("email", ""),
            committer_login=account.get("login"),
        )


def _installation_id(payload: dict[str, Any]) -> int | None:
    installation = payload.get("installation") or {}
    return installation.get("id")


def _owner_login(repository: dict[str, Any]) -> str:
    # Push payloads carry both ``login`` and ``name`` on the owner.
    owner = repository["owner"]
    return owner.get("login") or owner["name"]


def _parse_pull_request_opened(payload: dict[str, Any]) -> PullRequestOpened:
    repository = payload["repository"]
    return PullRequestOpened(
        owner=_owner_login(repository),
        repo=repository["name"],
        number=int(payload["pull_request"]["number"]),
        installation_id=_installation_id(payload),
        payload=payload,
    )


def _parse_push(payload: dict[str, Any]) -> Push:
    repository = payload["repository"]
    return Push(
        owner=_owner_login(repository),
        repo=repository["name"],
        before=payload.get("before", ""),
        after=payload.get("after", ""),
        commits=tuple(commit["id"] for commit in payload.get("commits") or []),
        installation_id=_installation_id(payload),
        payload=payload,
    )


_PARSERS: dict[EventKind, Callable[[dict[str, Any]], WebhookEvent]] = {
    EventKind.PULL_REQUEST_OPENED: _parse_pull_request_opened,
    EventKind.PUSH: _parse_push,
}

if set(_PARSERS) != set(EventKind):
    raise RuntimeError(f"No payload parser for {set(EventKind) - set(_PARSERS)}")


def resolve_kind(name: str, payload: dict[str, Any]) -> EventKind | None:
    """Map an ``X-GitHub-Event`` name and payload action to an EventKind."""
    action = payload.get("action")
    candidates = [f"{name}.{action}", name] if action else [name]
    for candidate in candidates:
        try:
            return EventKind(candidate)
        except ValueError:
            continue
    return None


def parse_event(name: str, payload: dict[str, Any]) -> WebhookEvent | None:
    """Build the typed event for a delivery.

    Args:
        name: The ``X-GitHub-Event`` header value.
        payload: The decoded JSON body.

    Returns:
        The typed event, or None when the app does not handle this event.

    Raises:
        WebhookPayloadError: If a handled event is missing required fields.
    """
    kind = resolve_kind(name, payload)
    if kind is None:
        return None
    try:
        return _PARSERS[kind](payload)
    except (KeyError, TypeError, ValueError) as e:
        raise WebhookPayloadError(f"Malformed {kind.value} payload: {e!r}") from e
