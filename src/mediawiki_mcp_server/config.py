"""
Process Configuration

Settings are read from the environment (and an optional `.env` file) through
pydantic-settings, then overridden by command-line flags. The MediaWiki API
URL is the only mandatory value; everything else has a default.
"""

from __future__ import annotations

import argparse
import os
from typing import Any, Dict, List, Optional, Sequence

from pydantic import AnyHttpUrl, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = "MediaWiki-MCP-Server/1.0"


class ConfigurationError(RuntimeError):
    """Raised when the process cannot start with the resolved configuration."""


class Settings(BaseSettings):
    mediawiki_api_url: Optional[AnyHttpUrl] = None
    mediawiki_username: Optional[str] = None
    mediawiki_password: Optional[SecretStr] = None

    mediawiki_timeout: float = 30.0
    mediawiki_user_agent: str = DEFAULT_USER_AGENT

    log_level: str = "info"

    # Optional local HTTP listener (health + CORS only)
    http_enabled: bool = False
    port: int = 3000
    allowed_origins: str = "*"
    ssl_enabled: bool = False
    ssl_key_path: Optional[str] = None
    ssl_cert_path: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    @property
    def api_url(self) -> str:
        if self.mediawiki_api_url is None:
            raise ConfigurationError(
                "MediaWiki API URL is required. Set it via --api-url or MEDIAWIKI_API_URL"
            )
        return str(self.mediawiki_api_url)

    @property
    def has_credentials(self) -> bool:
        return bool(self.mediawiki_username and self.mediawiki_password)

    @property
    def origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


# ---------------------------------------------------------------------
# Command Line
# ---------------------------------------------------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediawiki-mcp-server",
        description="Expose a MediaWiki wiki to MCP clients over stdio.",
    )
    parser.add_argument("--api-url", help="MediaWiki API URL (e.g. https://wiki.example.org/w/api.php)")
    parser.add_argument("--username", help="MediaWiki username")
    parser.add_argument("--password", help="MediaWiki password (or bot password)")
    parser.add_argument(
        "--log-level",
        choices=["error", "warn", "warning", "info", "debug"],
        help="Log verbosity (default: info)",
    )
    parser.add_argument(
        "--http",
        dest="http_enabled",
        action="store_true",
        default=None,
        help="Also start the local HTTP listener (health endpoint with CORS)",
    )
    parser.add_argument("--port", type=int, help="Port for the HTTP listener (default: 3000)")
    return parser


def _validate_tls(settings: Settings) -> None:
    if not settings.ssl_enabled:
        return

    if not settings.ssl_key_path or not settings.ssl_cert_path:
        raise ConfigurationError(
            "SSL is enabled but SSL_KEY_PATH or SSL_CERT_PATH is not set"
        )

    for path in (settings.ssl_key_path, settings.ssl_cert_path):
        if not os.access(os.path.abspath(path), os.R_OK):
            raise ConfigurationError("SSL key or certificate file not found")


def resolve_settings(
    argv: Optional[Sequence[str]] = None,
    env_file: Optional[str] = ".env",
) -> Settings:
    """
    Resolve the effective settings for this process.

    CLI flags take precedence over environment variables, which take
    precedence over `.env` file entries.

    Raises
    ------
    ConfigurationError
        If no API URL can be resolved, a value fails validation, or TLS is
        enabled without readable key and certificate files.
    """
    args = build_arg_parser().parse_args(argv)

    overrides: Dict[str, Any] = {
        "mediawiki_api_url": args.api_url,
        "mediawiki_username": args.username,
        "mediawiki_password": args.password,
        "log_level": args.log_level,
        "http_enabled": args.http_enabled,
        "port": args.port,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}

    try:
        settings = Settings(_env_file=env_file, **overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    # Touch the URL now so a missing value fails before anything is served
    _ = settings.api_url
    _validate_tls(settings)

    return settings
