"""Configuration and environment management."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3000
DEFAULT_PATH = "/api/webhook"
GITHUB_API = "https://api.github.com"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

MISSING_KEY_ISSUE = "PRIVATE_KEY_PATH is required and must point to the app's PEM private key"


class ConfigError(ValueError):
    """Raised when the app cannot be configured from the environment."""

    def __init__(self, issues: list[str]) -> None:
        self.issues = list(issues)
        super().__init__("Invalid configuration: " + "; ".join(self.issues))


@dataclass(frozen=True)
class AppConfig:
    """GitHub App identity and listener settings.

    Built once at startup and handed to the router, the API client and the
    handlers. Nothing reads the environment after this point.
    """

    app_id: str
    private_key: str = field(repr=False)
    webhook_secret: str = field(repr=False)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    path: str = DEFAULT_PATH
    log_level: str = "INFO"
    api_url: str = GITHUB_API

    @property
    def webhook_url(self) -> str:
        return f"http://{self.host}:{self.port}{self.path}"

    def validate(self) -> list[str]:
        """Validate configuration, return list of issues."""
        issues = []
        if not self.app_id:
            issues.append("APP_ID is required to authenticate as a GitHub App")
        if not self.webhook_secret:
            issues.append("WEBHOOK_SECRET is required to verify webhook deliveries")
        if not self.private_key:
            issues.append(MISSING_KEY_ISSUE)
        if not self.path.startswith("/"):
            issues.append(f"WEBHOOK_PATH must start with '/', got {self.path!r}")
        if not 0 < self.port < 65536:
            issues.append(f"PORT must be between 1 and 65535, got {self.port}")
        if self.log_level.upper() not in LOG_LEVELS:
            issues.append(
                f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}"
            )
        return issues


def load_config(env_file: str | None = None, **overrides: object) -> AppConfig:
    """Load the app configuration from a .env file and the environment.

    Variables already present in the environment take precedence over the
    .env file. Keyword overrides (e.g. from CLI flags) win over both; ``None``
    values are ignored.

    Args:
        env_file: Path to a .env file. Defaults to the nearest one found
            from the current working directory.
        **overrides: Field values that replace what the environment says.

    Returns:
        A validated AppConfig.

    Raises:
        ConfigError: If required values are missing or invalid.
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))

    key_error = None
    private_key = ""
    key_path = os.getenv("PRIVATE_KEY_PATH", "")
    if key_path:
        try:
            private_key = Path(key_path).read_text(encoding="utf-8")
        except OSError as e:
            key_error = f"Could not read private key at {key_path}: {e.strerror or e}"

    port_error = None
    port = DEFAULT_PORT
    raw_port = os.getenv("PORT", "")
    if raw_port:
        try:
            port = int(raw_port)
        except ValueError:
            port_error = f"PORT must be an integer, got {raw_port!r}"

    values: dict[str, object] = {
        "app_id": os.getenv("APP_ID", ""),
        "private_key": private_key,
        "webhook_secret": os.getenv("WEBHOOK_SECRET", ""),
        "host": os.getenv("HOST", DEFAULT_HOST),
        "port": port,
        "path": os.getenv("WEBHOOK_PATH", DEFAULT_PATH),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "api_url": os.getenv("GITHUB_API_URL", GITHUB_API).rstrip("/"),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    config = AppConfig(**values)

    issues = config.validate()
    if key_error:
        issues = [key_error if issue == MISSING_KEY_ISSUE else issue for issue in issues]
    if port_error:
        issues.append(port_error)
    if issues:
        raise ConfigError(issues)
    return config
