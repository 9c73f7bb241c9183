"""Plain helpers shared by the tests."""

from __future__ import annotations

import hashlib
import hmac
from typing import Any

WEBHOOK_SECRET = "test-webhook-secret"
API_URL = "https://api.github.test"


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Compute the X-Hub-Signature-256 value for a body."""
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def commit_response(sha: str, message: str = "Fix bug", name: str = "Mona") -> dict[str, Any]:
    """Body of GET /repos/{owner}/{repo}/commits/{ref}."""
    return {
        "sha": sha,
        "commit": {
            "message": message,
            "committer": {"name": name, "email": f"{name.lower()}@example.com"},
        },
        "committer": {"login": name.lower()},
    }
