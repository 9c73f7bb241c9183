"""hookshot: a minimal GitHub App webhook server."""

__version__ = "0.1.0"

from .config import AppConfig, ConfigError, load_config

__all__ = ["AppConfig", "ConfigError", "load_config", "__version__"]
