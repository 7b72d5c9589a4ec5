"""
Access token refresh for X OAuth integration.

Obtains a new access token (and possibly a rotated refresh token) from the
stored refresh token, once per run. A rejected refresh token is never
replayed: X invalidates it after first use. On failure the operator
re-authorizes.
"""

import logging
from enum import Enum
from typing import Optional

from .exceptions import CredentialError, MissingConfiguration
from .flow import ClientIdentity
from .rotation import PublishOutcome, SecretRotationPublisher
from .token_exchange import TOKEN_URL, client_authentication, request_tokens
from .token_storage import TokenPair

logger = logging.getLogger(__name__)


class RefreshState(Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"
    READY = "ready"
    FAILED = "failed"


class TokenRefreshCoordinator:
    """
    Runs the refresh grant and hands the result to the rotation publisher.

    The coordinator is scoped to one run. After the first attempt it never
    calls the token endpoint again: READY returns the cached pair and FAILED
    re-raises the original error.
    """

    def __init__(
        self,
        publisher: SecretRotationPublisher,
        token_url: str = TOKEN_URL,
        timeout: float = 30.0,
    ):
        self.publisher = publisher
        self.token_url = token_url
        self.timeout = timeout
        self.state = RefreshState.IDLE
        self.publish_outcome: Optional[PublishOutcome] = None
        self._token_pair: Optional[TokenPair] = None
        self._error: Optional[CredentialError] = None

    def refresh(
        self, stored_refresh_token: Optional[str], identity: ClientIdentity
    ) -> TokenPair:
        """
        Refresh the access token.

        Args:
            stored_refresh_token: Refresh token from the secret store
            identity: Client identity resolved at configuration time

        Returns:
            TokenPair; its refresh_token is set only if the server rotated it

        Raises:
            MissingConfiguration: If no refresh token is available
            TokenEndpointError: If the token endpoint rejects the refresh
        """
        if self.state is RefreshState.READY:
            return self._token_pair
        if self.state is RefreshState.FAILED:
            raise self._error

        if not stored_refresh_token:
            error = MissingConfiguration(
                "No refresh token available. Set X_OAUTH2_REFRESH_TOKEN, or run "
                "scripts/pkce_helper.py and scripts/exchange_code.py to authorize."
            )
            self._mark_failed(error)
            raise error

        body = {
            "grant_type": "refresh_token",
            "refresh_token": stored_refresh_token,
        }
        headers, body = client_authentication(identity, body)

        self.state = RefreshState.REFRESHING
        logger.info(f"Refreshing access token ({identity.mode.value} client)")

        try:
            token_pair = request_tokens(
                self.token_url, headers, body, self.timeout, "Token refresh"
            )
        except CredentialError as e:
            self._mark_failed(e)
            raise

        self._token_pair = token_pair
        self.state = RefreshState.READY
        logger.info("Successfully refreshed access token")

        # Rotated token must be published before the pair is returned
        try:
            self.publish_outcome = self.publisher.publish_if_rotated(token_pair)
        except Exception as e:
            logger.exception("Unexpected error publishing rotated refresh token")
            self.publish_outcome = self.publisher.record_failure(
                token_pair, f"unexpected error while publishing: {e}"
            )
        return token_pair

    def _mark_failed(self, error: CredentialError) -> None:
        self.state = RefreshState.FAILED
        self._error = error
