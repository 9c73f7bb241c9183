"""GitHub App JWT authentication and installation-scoped REST calls."""
from __future__ import annotations

import re
import time
from typing import Any
from urllib.parse import quote

import httpx
import jwt
from cryptography.hazmat.primitives.serialization import load_pem_private_key

from ..config import GITHUB_API

_PLACEHOLDER = re.compile(r"{(\w+)}")
_BODY_METHODS = {"POST", "PUT", "PATCH"}


class GitHubApp:
    """GitHub App authentication manager.

    Handles JWT generation (RS256) and installation token exchange.
    """

    def __init__(
        self,
        app_id: str,
        private_key: str,
        api_url: str = GITHUB_API,
    ) -> None:
        self.app_id = app_id
        self.api_url = api_url.rstrip("/")
        self._private_key = private_key
        self._key_checked = False
        self._token_cache: dict[int, tuple[str, float]] = {}

    def _signing_key(self) -> str:
        """Return the PEM private key, validating it on first use.

        Raises:
            ValueError: If the key cannot be parsed as a PEM private key.
        """
        if not self._key_checked:
            load_pem_private_key(self._private_key.encode(), password=None)
            self._key_checked = True
        return self._private_key

    def generate_jwt(self) -> str:
        """Create a JWT for GitHub App authentication.

        The JWT uses RS256, expires in 10 minutes, and contains the app_id
        as the issuer claim.

        Returns:
            Encoded JWT string.

        Raises:
            ValueError: If app_id is empty or the private key is invalid.
        """
        if not self.app_id:
            raise ValueError("APP_ID is required to generate a JWT")

        private_key = self._signing_key()
        now = int(time.time())
        payload = {
            "iat": now - 60,  # issued at (60s in the past for clock drift)
            "exp": now + (10 * 60),  # expires in 10 minutes
            "iss": self.app_id,
        }
        return jwt.encode(payload, private_key, algorithm="RS256")

    async def get_installation_token(self, installation_id: int) -> str:
        """Exchange a JWT for an installation access token.

        Tokens are cached for 55 minutes (GitHub issues them for 1 hour).

        Args:
            installation_id: The GitHub App installation ID.

        Returns:
            Installation access token string.
        """
        now = time.time()
        cached = self._token_cache.get(installation_id)
        if cached is not None:
            token, expiry = cached
            if now < expiry:
                return token

        app_jwt = self.generate_jwt()
        async with httpx.AsyncClient() as client:
            resp = await client.post(
                f"{self.api_url}/app/installations/{installation_id}/access_tokens",
                headers={
                    "Authorization": f"Bearer {app_jwt}",
                    "Accept": "application/vnd.github+json",
                },
            )
        resp.raise_for_status()
        token = resp.json()["token"]
        self._token_cache[installation_id] = (token, now + 55 * 60)
        return token

    def installation_client(self, installation_id: int | None) -> InstallationClient:
        """Return a client that acts on behalf of one installation.

        Deliveries without an installation get an unauthenticated client.
        """
        return InstallationClient(self, installation_id)


class InstallationClient:
    """REST client authenticated as a single app installation.

    Calls take a route such as ``"GET /repos/{owner}/{repo}"`` and keyword
    parameters. Placeholders are filled from the parameters, ``headers`` is
    merged into the request headers, and whatever is left becomes the JSON
    body (POST/PUT/PATCH) or the query string (everything else).
    """

    def __init__(self, app: GitHubApp, installation_id: int | None) -> None:
        self._app = app
        self.installation_id = installation_id

    async def request(self, route: str, **params: Any) -> Any:
        """Send one REST request and return the decoded JSON response.

        Raises:
            httpx.HTTPStatusError: If GitHub answers with a non-2xx status.
            httpx.HTTPError: On transport failures.
            ValueError: If the route references a missing parameter.
        """
        method, _, template = route.partition(" ")
        method = method.upper()

        headers = httpx.Headers({"Accept": "application/vnd.github+json"})
        headers.update(params.pop("headers", None) or {})

        def _fill(match: re.Match) -> str:
            name = match.group(1)
            if name not in params:
                raise ValueError(f"Missing parameter '{name}' for route '{route}'")
            return quote(str(params.pop(name)), safe="")

        path = _PLACEHOLDER.sub(_fill, template)

        if self.installation_id is not None:
            token = await self._app.get_installation_token(self.installation_id)
            headers["Authorization"] = f"token {token}"

        kwargs: dict[str, Any] = {}
        if params:
            kwargs["json" if method in _BODY_METHODS else "params"] = params

        async with httpx.AsyncClient(headers=headers) as client:
            resp = await client.request(method, f"{self._app.api_url}{path}", **kwargs)
            resp.raise_for_status()
            if not resp.content:
                return None
            return resp.json()
