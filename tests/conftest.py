"""Shared pytest fixtures for the hookshot test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)

from helpers import API_URL, WEBHOOK_SECRET
from hookshot.config import AppConfig


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    """A freshly generated RSA private key in PEM form."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key.private_bytes(
        Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
    ).decode()


@pytest.fixture()
def key_file(tmp_path: Path, private_key_pem: str) -> Path:
    """The test private key written to a temp file."""
    path = tmp_path / "test-app.pem"
    path.write_text(private_key_pem)
    return path


@pytest.fixture()
def app_config(private_key_pem: str) -> AppConfig:
    return AppConfig(
        app_id="12345",
        private_key=private_key_pem,
        webhook_secret=WEBHOOK_SECRET,
        api_url=API_URL,
    )


@pytest.fixture()
def pull_request_opened_payload() -> dict[str, Any]:
    """Minimal pull_request.opened delivery body."""
    return {
        "action": "opened",
        "number": 42,
        "pull_request": {"number": 42, "title": "Fix memory leak in parser"},
        "repository": {
            "name": "widgets",
            "full_name": "octo-org/widgets",
            "owner": {"login": "octo-org"},
        },
        "installation": {"id": 777},
    }


@pytest.fixture()
def push_payload() -> callable:
    """Factory for push delivery bodies with the given commit SHAs."""

    def _factory(*shas: str) -> dict[str, Any]:
        return {
            "ref": "refs/heads/main",
            "before": "0" * 40,
            "after": shas[-1] if shas else "f" * 40,
            "commits": [
                {"id": sha, "message": f"commit {sha}", "distinct": True}
                for sha in shas
            ],
            "repository": {
                "name": "widgets",
                "full_name": "octo-org/widgets",
                "owner": {"name": "octo-org", "login": "octo-org"},
            },
            "installation": {"id": 777},
        }

    return _factory
