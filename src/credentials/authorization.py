"""
Completion of an interactive authorization.

Looks up the PKCE verifier stored when the authorization URL was built,
exchanges the returned code, saves the tokens and discards the verifier.
"""

import logging
from dataclasses import replace
from typing import Optional

from .config import XOAuthConfig
from .exceptions import ConfigurationError
from .pkce import PKCEStore
from .token_exchange import TokenExchangeClient
from .token_storage import TokenPair, TokenStorage

logger = logging.getLogger(__name__)


def complete_authorization(
    config: XOAuthConfig,
    code: str,
    state: Optional[str] = None,
    pkce_store: Optional[PKCEStore] = None,
    token_storage: Optional[TokenStorage] = None,
    exchange_client: Optional[TokenExchangeClient] = None,
) -> TokenPair:
    """
    Exchange an authorization code using the stored verifier.

    Args:
        config: OAuth configuration
        code: Authorization code from the redirect
        state: State from the redirect (latest pending record if omitted)
        pkce_store: Verifier store (config.pkce_file if omitted)
        token_storage: Where to save tokens (config.token_file if omitted)
        exchange_client: Token exchange client (built from config if omitted)

    Returns:
        TokenPair obtained from X

    Raises:
        ConfigurationError: If the stored record belongs to another client,
                            or a PKCE client has no stored verifier
        TokenEndpointError: If X rejects the exchange
    """
    pkce_store = pkce_store or PKCEStore(config.pkce_file)
    token_storage = token_storage or TokenStorage(config.token_file)
    exchange_client = exchange_client or TokenExchangeClient(
        token_url=config.token_url, timeout=config.request_timeout
    )

    record = pkce_store.load(state)
    identity = config.identity
    code_verifier = None

    if record is not None:
        if record.client_id and record.client_id != identity.client_id:
            raise ConfigurationError(
                f"Pending authorization {record.state} was started for a different client_id"
            )
        code_verifier = record.code_verifier
        if record.redirect_uri:
            # The exchange must repeat the redirect URI used in the authorize request
            identity = replace(identity, redirect_uri=record.redirect_uri)
    elif state is not None:
        logger.warning(f"No stored PKCE verifier for state {state}")

    token_pair = exchange_client.exchange(code, code_verifier, identity)

    if record is not None:
        pkce_store.discard(record.state)

    token_storage.save(token_pair)
    return token_pair
