"""
OAuth 2.0 credential lifecycle for the X API.

This module obtains and keeps alive the X user-context token the bot posts
with:

- PKCE pair generation and authorization URL assembly
- Authorization code exchange (public/PKCE or confidential clients)
- Refresh of the access token from the stored refresh token
- Publication of rotated refresh tokens to GitHub Actions secrets

The refresh token lives in a repository secret between runs. Each run
refreshes once and, if X rotated the refresh token, seals the new one
against the repository's public key and writes it back.

Public API:
    XOAuthConfig / SecretStoreConfig: Configuration management
    FlowMode, PublicClient, ConfidentialClient: Client identity
    PKCEPair, PKCEStore: PKCE generation and verifier persistence
    TokenPair, TokenStorage: Token data and local token file
    TokenExchangeClient, complete_authorization: Code exchange
    TokenRefreshCoordinator: Once-per-run refresh
    SecretRotationPublisher, PublishOutcome: Rotated token publication
    CredentialSession: High-level interface

Exceptions:
    CredentialError: Base exception
    ConfigurationError: Missing or contradictory configuration
    MissingParameter / MissingConfiguration: Specific missing inputs
    TokenEndpointError: Token endpoint rejected a request
    SecretPublishError: Secret store write failed
    NetworkError: Timeout or connection failure
    TokenStorageError: Local file operation failed
"""

from .authorization import complete_authorization
from .config import SecretStoreConfig, XOAuthConfig
from .exceptions import (
    ConfigurationError,
    CredentialError,
    MissingConfiguration,
    MissingParameter,
    NetworkError,
    SecretPublishError,
    SecretStoreNetworkError,
    TokenEndpointError,
    TokenEndpointNetworkError,
    TokenStorageError,
)
from .flow import (
    ClientIdentity,
    ConfidentialClient,
    FlowMode,
    PublicClient,
    build_client_identity,
    resolve_flow,
)
from .pkce import (
    PKCEPair,
    PKCERecord,
    PKCEStore,
    build_authorization_url,
    generate_pkce_pair,
    generate_state,
)
from .rotation import PublishOutcome, PublishStatus, SecretRotationPublisher
from .secret_store import GitHubSecretStore, SealedSecret, SecretStorePublicKey, seal_secret
from .session import CredentialSession
from .token_exchange import TokenExchangeClient
from .token_refresh import RefreshState, TokenRefreshCoordinator
from .token_storage import TokenPair, TokenStorage

__all__ = [
    # Configuration
    "XOAuthConfig",
    "SecretStoreConfig",
    # Flow
    "FlowMode",
    "ClientIdentity",
    "PublicClient",
    "ConfidentialClient",
    "resolve_flow",
    "build_client_identity",
    # PKCE
    "PKCEPair",
    "PKCERecord",
    "PKCEStore",
    "generate_pkce_pair",
    "generate_state",
    "build_authorization_url",
    # Tokens
    "TokenPair",
    "TokenStorage",
    "TokenExchangeClient",
    "complete_authorization",
    "TokenRefreshCoordinator",
    "RefreshState",
    # Rotation
    "GitHubSecretStore",
    "SecretStorePublicKey",
    "SealedSecret",
    "seal_secret",
    "SecretRotationPublisher",
    "PublishOutcome",
    "PublishStatus",
    # Session
    "CredentialSession",
    # Exceptions
    "CredentialError",
    "ConfigurationError",
    "MissingParameter",
    "MissingConfiguration",
    "NetworkError",
    "TokenEndpointError",
    "TokenEndpointNetworkError",
    "SecretPublishError",
    "SecretStoreNetworkError",
    "TokenStorageError",
]
