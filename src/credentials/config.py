"""
Credential configuration for X OAuth 2.0 integration.

This module provides configuration management for the X (Twitter) OAuth 2.0
credential lifecycle and for the GitHub secret store that holds the
refresh token between runs. Configuration can be loaded from environment
variables or provided programmatically. Secrets are never hard-coded.
"""

import math
import os
import re
from dataclasses import dataclass, field
from typing import Optional

from .exceptions import ConfigurationError
from .flow import ClientIdentity, FlowMode, build_client_identity

DEFAULT_SCOPE = "tweet.write tweet.read users.read offline.access"
DEFAULT_SECRET_NAME = "X_OAUTH2_REFRESH_TOKEN"

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str) -> bool:
    """Read a boolean flag from the environment."""
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def _env_timeout(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}") from e
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be a finite number of seconds, got {raw!r}")
    return value


@dataclass
class XOAuthConfig:
    """
    Configuration for X OAuth 2.0.

    The client identity (public or confidential) is resolved once here and
    reused by the code exchange and every refresh.

    Attributes:
        client_id: X app OAuth 2.0 client ID
        client_secret: X app client secret (confidential clients only)
        redirect_uri: Callback URL registered with the X app
        flow: Explicit flow override (None infers from client_secret)
        refresh_token: Refresh token stored between runs
        scope: Space-separated OAuth scopes to request
        authorization_url: X OAuth 2.0 authorize endpoint
        token_url: X OAuth 2.0 token endpoint
        api_base_url: X API v2 base URL
        request_timeout: Timeout in seconds for each HTTP call
        pkce_file: Where PKCE verifiers are kept between processes
        token_file: Where the code exchange writes obtained tokens
    """

    # Required - from X Developer Portal
    client_id: str
    client_secret: Optional[str] = field(default=None, repr=False)

    redirect_uri: str = ""
    flow: Optional[FlowMode] = None
    refresh_token: Optional[str] = field(default=None, repr=False)
    scope: str = DEFAULT_SCOPE

    # X OAuth endpoints
    authorization_url: str = "https://twitter.com/i/oauth2/authorize"
    token_url: str = "https://api.twitter.com/2/oauth2/token"
    api_base_url: str = "https://api.twitter.com"

    request_timeout: float = 30.0

    # Local files used by the interactive authorization scripts
    pkce_file: str = ".pkce.json"
    token_file: str = ".x_tokens.json"

    identity: ClientIdentity = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration and resolve the client identity."""
        if not math.isfinite(self.request_timeout) or self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be a positive finite number")

        self.identity = build_client_identity(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.redirect_uri,
            explicit_flow=self.flow,
        )

    @property
    def mode(self) -> FlowMode:
        """Resolved authentication mode."""
        return self.identity.mode

    @classmethod
    def from_env(cls) -> "XOAuthConfig":
        """
        Load configuration from environment variables.

        Required environment variables:
            X_CLIENT_ID: X app OAuth 2.0 client ID

        Optional environment variables:
            X_CLIENT_SECRET: Client secret (makes the client confidential)
            X_REDIRECT_URI: Registered callback URL
            X_OAUTH2_FLOW: "pkce" or "confidential" to override inference
            X_OAUTH2_REFRESH_TOKEN: Stored refresh token
            X_SCOPES: OAuth scopes (default: tweet.write tweet.read users.read offline.access)
            X_HTTP_TIMEOUT: Per-request timeout in seconds (default: 30)
            X_PKCE_FILE: PKCE verifier file (default: .pkce.json)
            X_TOKEN_FILE: Token output file (default: .x_tokens.json)

        Returns:
            XOAuthConfig instance

        Raises:
            ConfigurationError: If required environment variables are missing
                                or contradictory
        """
        client_id = os.environ.get("X_CLIENT_ID")

        if not client_id:
            raise ConfigurationError(
                "Missing X OAuth credentials. Set environment variables:\n"
                "  X_CLIENT_ID=your_client_id\n"
                "  X_CLIENT_SECRET=your_client_secret   (confidential apps only)\n"
                "\n"
                "Get credentials from: https://developer.x.com/en/portal/dashboard"
            )

        return cls(
            client_id=client_id,
            client_secret=os.environ.get("X_CLIENT_SECRET") or None,
            redirect_uri=os.environ.get("X_REDIRECT_URI", ""),
            flow=FlowMode.parse(os.environ.get("X_OAUTH2_FLOW")),
            refresh_token=os.environ.get("X_OAUTH2_REFRESH_TOKEN") or None,
            scope=os.environ.get("X_SCOPES", DEFAULT_SCOPE),
            request_timeout=_env_timeout("X_HTTP_TIMEOUT", 30.0),
            pkce_file=os.environ.get("X_PKCE_FILE", ".pkce.json"),
            token_file=os.environ.get("X_TOKEN_FILE", ".x_tokens.json"),
        )


@dataclass
class SecretStoreConfig:
    """
    Configuration for the GitHub Actions secret store.

    Attributes:
        repository: "owner/repo" holding the secret
        token: GitHub token allowed to write repository secrets
        secret_name: Name of the refresh token secret
        api_url: GitHub REST API base URL
        dry_run: Skip publishing (decision is still logged)
        recovery_file: Where a rotated token is written if publishing fails
        request_timeout: Timeout in seconds for each HTTP call
    """

    repository: Optional[str] = None
    token: Optional[str] = field(default=None, repr=False)
    secret_name: str = DEFAULT_SECRET_NAME
    api_url: str = "https://api.github.com"
    dry_run: bool = False
    recovery_file: Optional[str] = None
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.repository and not re.fullmatch(r"[\w.-]+/[\w.-]+", self.repository):
            raise ConfigurationError(
                f"repository must look like 'owner/repo', got {self.repository!r}"
            )

        if not self.secret_name:
            raise ConfigurationError("secret_name cannot be empty")

        if not math.isfinite(self.request_timeout) or self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be a positive finite number")

    @property
    def is_configured(self) -> bool:
        """Whether enough is known to write to the store."""
        return bool(self.repository and self.token)

    @classmethod
    def from_env(cls) -> "SecretStoreConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            GITHUB_REPOSITORY: owner/repo (set automatically in GitHub Actions)
            GH_SECRETS_TOKEN: Token with "secrets: write" on the repository
            X_REFRESH_TOKEN_SECRET_NAME: Secret name (default: X_OAUTH2_REFRESH_TOKEN)
            GITHUB_API_URL: API base URL (default: https://api.github.com)
            ROTATION_DRY_RUN: "1"/"true"/"yes" to skip publishing
            X_ROTATION_RECOVERY_FILE: Recovery file for unpublished rotations
            X_HTTP_TIMEOUT: Per-request timeout in seconds (default: 30)

        Returns:
            SecretStoreConfig instance (possibly not configured)
        """
        return cls(
            repository=os.environ.get("GITHUB_REPOSITORY") or None,
            token=os.environ.get("GH_SECRETS_TOKEN") or None,
            secret_name=os.environ.get("X_REFRESH_TOKEN_SECRET_NAME", DEFAULT_SECRET_NAME),
            api_url=os.environ.get("GITHUB_API_URL", "https://api.github.com"),
            dry_run=_env_flag("ROTATION_DRY_RUN"),
            recovery_file=os.environ.get("X_ROTATION_RECOVERY_FILE") or None,
            request_timeout=_env_timeout("X_HTTP_TIMEOUT", 30.0),
        )
