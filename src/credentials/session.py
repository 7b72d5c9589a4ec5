"""
Credential session: the interface the rest of the bot uses.

A session is created once per run. The first ``get_client()`` call
refreshes the access token (publishing a rotated refresh token if needed)
and every later call returns the same authenticated client, so a run makes
at most one refresh no matter how many API calls follow.
"""

import logging
from typing import Callable, Optional

from src.x.client import XClient

from .config import SecretStoreConfig, XOAuthConfig
from .rotation import PublishOutcome, SecretRotationPublisher
from .secret_store import GitHubSecretStore
from .token_refresh import TokenRefreshCoordinator
from .token_storage import TokenPair, TokenStorage

logger = logging.getLogger(__name__)


def build_refresh_coordinator(
    config: XOAuthConfig, store_config: SecretStoreConfig
) -> TokenRefreshCoordinator:
    """Wire the refresh coordinator to a publisher for the configured store."""
    store = GitHubSecretStore(store_config) if store_config.is_configured else None
    recovery = TokenStorage(store_config.recovery_file) if store_config.recovery_file else None

    publisher = SecretRotationPublisher(
        store=store,
        secret_name=store_config.secret_name,
        dry_run=store_config.dry_run,
        recovery_storage=recovery,
    )
    return TokenRefreshCoordinator(
        publisher=publisher,
        token_url=config.token_url,
        timeout=config.request_timeout,
    )


class CredentialSession:
    """
    Run-scoped, lazily authenticated X client.

    Example:
        session = CredentialSession.from_env()
        client = session.get_client()      # refreshes once
        client.post_tweet("hello")
        session.get_client()               # same client, no network call
    """

    def __init__(
        self,
        config: XOAuthConfig,
        store_config: Optional[SecretStoreConfig] = None,
        coordinator: Optional[TokenRefreshCoordinator] = None,
        client_factory: Callable[..., XClient] = XClient,
    ):
        """
        Initialize credential session.

        Args:
            config: OAuth configuration (client identity, refresh token)
            store_config: Secret store configuration (not configured if omitted)
            coordinator: Refresh coordinator (built from the configs if omitted)
            client_factory: Builds the authenticated client from an access token
        """
        self.config = config
        self.store_config = store_config or SecretStoreConfig()
        self.coordinator = coordinator or build_refresh_coordinator(config, self.store_config)
        self.client_factory = client_factory
        self._client: Optional[XClient] = None
        self._token_pair: Optional[TokenPair] = None

    @classmethod
    def from_env(cls) -> "CredentialSession":
        """
        Build a session from environment variables.

        Raises:
            ConfigurationError: If required variables are missing or contradictory
        """
        return cls(XOAuthConfig.from_env(), SecretStoreConfig.from_env())

    def get_client(self) -> XClient:
        """
        Return the authenticated client, refreshing on first use.

        Raises:
            MissingConfiguration: If no refresh token is configured
            TokenEndpointError: If the refresh is rejected
        """
        if self._client is None:
            self._token_pair = self.coordinator.refresh(
                self.config.refresh_token, self.config.identity
            )
            self._client = self.client_factory(
                self._token_pair.access_token,
                base_url=self.config.api_base_url,
                timeout=self.config.request_timeout,
            )
            logger.info("Authenticated X client ready")
        return self._client

    @property
    def access_token(self) -> str:
        self.get_client()
        return self._token_pair.access_token

    @property
    def token_pair(self) -> Optional[TokenPair]:
        return self._token_pair

    @property
    def publish_outcome(self) -> Optional[PublishOutcome]:
        """Outcome of publishing a rotated refresh token, once refreshed."""
        return self.coordinator.publish_outcome
