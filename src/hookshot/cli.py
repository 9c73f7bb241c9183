"""CLI entry point for hookshot.

``serve`` runs the webhook listener; ``check`` verifies the app's
credentials against the GitHub API.
"""

import sys

import click
import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from rich.console import Console
from rich.panel import Panel

from .config import AppConfig, ConfigError, load_config
from .github.app import GitHubApp
from .logging_config import configure_logging
from .server import WebhookServer

console = Console()


def _load_or_exit(env_file, **overrides) -> AppConfig:
    try:
        return load_config(env_file, **overrides)
    except ConfigError as e:
        console.print("[bold red]Configuration issues found:\n")
        for issue in e.issues:
            console.print(f"  [red]✗ {issue}")
        console.print(
            "\n[yellow]Copy .env.example to .env and fill in your app credentials."
        )
        sys.exit(1)


@click.group()
def cli():
    """hookshot: a GitHub App that greets new PRs and logs pushed commits."""
    pass


@cli.command()
@click.option("--host", default=None, help="Interface to bind. Default: HOST or localhost")
@click.option("--port", default=None, type=int, help="Port to bind. Default: PORT or 3000")
@click.option(
    "--path",
    default=None,
    help="Webhook path. Default: WEBHOOK_PATH or /api/webhook",
)
@click.option(
    "--env-file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a .env file",
)
def serve(host, port, path, env_file):
    """Listen for GitHub webhook deliveries."""
    config = _load_or_exit(env_file, host=host, port=port, path=path)
    configure_logging(config.log_level)

    console.print(
        Panel(
            "[bold cyan]hookshot[/bold cyan]\n"
            f"GitHub App {config.app_id} webhook listener",
            border_style="cyan",
        )
    )
    WebhookServer(config).run()


@cli.command()
@click.option(
    "--env-file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a .env file",
)
def check(env_file):
    """Verify configuration and GitHub App credentials."""
    config = _load_or_exit(env_file)

    console.print("[bold green]✓ Configuration looks good!")
    console.print(f"  App ID: {config.app_id}")
    console.print(f"  Webhook URL: {config.webhook_url}")
    console.print(f"  API: {config.api_url}")

    github_app = GitHubApp(config.app_id, config.private_key, api_url=config.api_url)
    try:
        app_jwt = github_app.generate_jwt()
    except (ValueError, TypeError, UnsupportedAlgorithm, jwt.PyJWTError) as e:
        console.print(f"  [red]✗ Invalid private key: {e}")
        sys.exit(1)

    try:
        resp = httpx.get(
            f"{config.api_url}/app",
            headers={
                "Authorization": f"Bearer {app_jwt}",
                "Accept": "application/vnd.github+json",
            },
            timeout=10,
        )
        resp.raise_for_status()
    except httpx.HTTPError as e:
        console.print(f"  [red]✗ GitHub App authentication failed: {e}")
        sys.exit(1)

    app_data = resp.json()
    console.print(
        f"  [green]✓ Authenticated as {app_data.get('name', '?')}, "
        f"{app_data.get('installations_count', '?')} installation(s)"
    )


if __name__ == "__main__":
    cli()
