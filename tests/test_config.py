"""Tests for hookshot.config module."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from hookshot.config import (
    DEFAULT_PATH,
    DEFAULT_PORT,
    AppConfig,
    ConfigError,
    load_config,
)

_ENV_VARS = (
    "APP_ID",
    "WEBHOOK_SECRET",
    "PRIVATE_KEY_PATH",
    "HOST",
    "PORT",
    "WEBHOOK_PATH",
    "LOG_LEVEL",
    "GITHUB_API_URL",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Clear app variables and return a path for a (not yet written) .env file."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return tmp_path / ".env"


@pytest.fixture()
def full_env(monkeypatch: pytest.MonkeyPatch, clean_env: Path, key_file: Path) -> Path:
    monkeypatch.setenv("APP_ID", "12345")
    monkeypatch.setenv("WEBHOOK_SECRET", "s3cret")
    monkeypatch.setenv("PRIVATE_KEY_PATH", str(key_file))
    return clean_env


class TestLoadConfig:
    """Tests for load_config()."""

    def test_reads_required_values(self, full_env: Path, private_key_pem: str) -> None:
        config = load_config(str(full_env))
        assert config.app_id == "12345"
        assert config.webhook_secret == "s3cret"
        assert config.private_key == private_key_pem

    def test_listener_defaults(self, full_env: Path) -> None:
        config = load_config(str(full_env))
        assert config.host == "localhost"
        assert config.port == DEFAULT_PORT == 3000
        assert config.path == DEFAULT_PATH == "/api/webhook"
        assert config.webhook_url == "http://localhost:3000/api/webhook"

    def test_reads_dotenv_file(self, clean_env: Path, key_file: Path) -> None:
        clean_env.write_text(
            f"APP_ID=999\nWEBHOOK_SECRET=from-file\nPRIVATE_KEY_PATH={key_file}\n"
        )
        config = load_config(str(clean_env))
        assert config.app_id == "999"
        assert config.webhook_secret == "from-file"

    def test_environment_wins_over_dotenv(
        self, monkeypatch: pytest.MonkeyPatch, clean_env: Path, key_file: Path
    ) -> None:
        clean_env.write_text(
            f"APP_ID=999\nWEBHOOK_SECRET=from-file\nPRIVATE_KEY_PATH={key_file}\n"
        )
        monkeypatch.setenv("APP_ID", "111")
        config = load_config(str(clean_env))
        assert config.app_id == "111"

    def test_overrides_replace_environment(
        self, monkeypatch: pytest.MonkeyPatch, full_env: Path
    ) -> None:
        monkeypatch.setenv("PORT", "8080")
        config = load_config(str(full_env), port=4000, host=None)
        assert config.port == 4000
        assert config.host == "localhost"

    def test_optional_values(self, monkeypatch: pytest.MonkeyPatch, full_env: Path) -> None:
        monkeypatch.setenv("HOST", "0.0.0.0")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("WEBHOOK_PATH", "/hooks/github")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example.com/api/v3/")
        config = load_config(str(full_env))
        assert config.webhook_url == "http://0.0.0.0:8080/hooks/github"
        assert config.log_level == "DEBUG"
        assert config.api_url == "https://ghe.example.com/api/v3"

    def test_missing_everything_lists_each_issue(self, clean_env: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(str(clean_env))
        issues = exc_info.value.issues
        assert len(issues) == 3
        assert any("APP_ID" in i for i in issues)
        assert any("WEBHOOK_SECRET" in i for i in issues)
        assert any("PRIVATE_KEY_PATH" in i for i in issues)

    def test_unreadable_key_file(
        self, monkeypatch: pytest.MonkeyPatch, full_env: Path, tmp_path: Path
    ) -> None:
        missing = tmp_path / "missing.pem"
        monkeypatch.setenv("PRIVATE_KEY_PATH", str(missing))
        with pytest.raises(ConfigError) as exc_info:
            load_config(str(full_env))
        assert exc_info.value.issues == [
            f"Could not read private key at {missing}: No such file or directory"
        ]

    def test_non_integer_port(self, monkeypatch: pytest.MonkeyPatch, full_env: Path) -> None:
        monkeypatch.setenv("PORT", "http")
        with pytest.raises(ConfigError, match="PORT must be an integer"):
            load_config(str(full_env))

    def test_unknown_log_level(self, monkeypatch: pytest.MonkeyPatch, full_env: Path) -> None:
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        with pytest.raises(ConfigError, match="LOG_LEVEL must be one of"):
            load_config(str(full_env))


class TestAppConfig:
    """Tests for AppConfig."""

    def test_is_immutable(self, app_config: AppConfig) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            app_config.app_id = "other"  # type: ignore[misc]

    def test_repr_hides_secrets(self, app_config: AppConfig) -> None:
        text = repr(app_config)
        assert app_config.webhook_secret not in text
        assert "PRIVATE KEY" not in text

    def test_validate_ok(self, app_config: AppConfig) -> None:
        assert app_config.validate() == []

    def test_validate_bad_path_and_port(self, app_config: AppConfig) -> None:
        config = dataclasses.replace(app_config, path="api/webhook", port=70000)
        issues = config.validate()
        assert len(issues) == 2
        assert "WEBHOOK_PATH" in issues[0]
        assert "PORT" in issues[1]

    def test_validate_log_level(self, app_config: AppConfig) -> None:
        assert dataclasses.replace(app_config, log_level="debug").validate() == []
        issues = dataclasses.replace(app_config, log_level="verbose").validate()
        assert issues == [
            "LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG, got 'verbose'"
        ]
