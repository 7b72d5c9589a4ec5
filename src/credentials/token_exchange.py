"""
Token exchange for X OAuth integration.

This module converts an authorization code into an access/refresh token
pair and holds the token endpoint plumbing shared with the refresh
coordinator: request shaping per client type and error translation.
"""

import logging
from base64 import b64encode
from typing import Dict, Optional, Tuple

import requests

from .exceptions import (
    MissingParameter,
    TokenEndpointError,
    TokenEndpointNetworkError,
)
from .flow import ClientIdentity, ConfidentialClient
from .token_storage import TokenPair

logger = logging.getLogger(__name__)

TOKEN_URL = "https://api.twitter.com/2/oauth2/token"


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """HTTP Basic credential for a confidential client."""
    credentials = f"{client_id}:{client_secret}"
    return f"Basic {b64encode(credentials.encode()).decode()}"


def client_authentication(
    identity: ClientIdentity, body: Dict[str, str]
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Shape a token request for the client type.

    Public clients identify themselves with ``client_id`` in the body and
    send no Authorization header. Confidential clients send a Basic header
    and leave ``client_id`` out of the body; X rejects the other shape.

    Returns:
        (headers, body) ready for the POST
    """
    headers = {"Content-Type": "application/x-www-form-urlencoded"}
    body = dict(body)

    if isinstance(identity, ConfidentialClient):
        headers["Authorization"] = basic_auth_header(
            identity.client_id, identity.client_secret
        )
        body.pop("client_id", None)
    else:
        body["client_id"] = identity.client_id

    return headers, body


def _error_from_response(response: requests.Response, action: str) -> TokenEndpointError:
    """Translate a non-2xx token endpoint response."""
    error: Optional[str] = None
    description: Optional[str] = None
    try:
        payload = response.json()
        if isinstance(payload, dict):
            error = payload.get("error")
            description = payload.get("error_description")
    except ValueError:
        pass

    access_level = response.headers.get("x-access-level")

    message = f"{action} failed with status {response.status_code}"
    if error:
        message += f": {error}"
    if description:
        message += f" - {description}"
    if access_level:
        message += f" (x-access-level: {access_level})"
    if response.status_code in (401, 403):
        message += (
            ". Check the client ID/secret and that the app has OAuth 2.0 "
            "user authentication with Read and write permissions enabled."
        )

    return TokenEndpointError(
        message,
        status_code=response.status_code,
        error=error,
        error_description=description,
        access_level=access_level,
    )


def request_tokens(
    token_url: str,
    headers: Dict[str, str],
    body: Dict[str, str],
    timeout: float,
    action: str,
) -> TokenPair:
    """
    POST a form-encoded token request and parse the result.

    Raises:
        TokenEndpointNetworkError: On timeout or connection failure
        TokenEndpointError: On non-2xx or malformed response
    """
    try:
        response = requests.post(token_url, headers=headers, data=body, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"Network error during {action.lower()}: {e}")
        raise TokenEndpointNetworkError(
            f"Network error during {action.lower()}: {e}"
        ) from e

    if not 200 <= response.status_code < 300:
        err = _error_from_response(response, action)
        logger.error(str(err))
        raise err

    try:
        data = response.json()
    except ValueError as e:
        logger.error(f"Invalid response from token endpoint: {e}")
        raise TokenEndpointError(
            f"Invalid response from token endpoint: {e}",
            status_code=response.status_code,
        ) from e

    return TokenPair.from_response(data)


class TokenExchangeClient:
    """
    Exchanges an authorization code for tokens.

    Example:
        client = TokenExchangeClient()
        tokens = client.exchange(code, record.code_verifier, config.identity)
    """

    def __init__(self, token_url: str = TOKEN_URL, timeout: float = 30.0):
        self.token_url = token_url
        self.timeout = timeout

    def exchange(
        self,
        code: str,
        code_verifier: Optional[str],
        identity: ClientIdentity,
    ) -> TokenPair:
        """
        Exchange an authorization code for an access/refresh token pair.

        Confidential clients may also send a code verifier when the
        authorization was started with a challenge; public clients must.

        Args:
            code: Authorization code from the callback
            code_verifier: Verifier for the challenge sent to the authorize endpoint
            identity: Client identity resolved at configuration time

        Returns:
            TokenPair

        Raises:
            MissingParameter: If a field required for the client type is
                              missing (no request is made)
            TokenEndpointError: If the token endpoint rejects the exchange
        """
        if not code:
            raise MissingParameter("Authorization code is required")
        if not identity.client_id:
            raise MissingParameter("client_id is required")
        if not identity.redirect_uri:
            raise MissingParameter(
                "redirect_uri is required for the code exchange (set X_REDIRECT_URI)"
            )
        if not isinstance(identity, ConfidentialClient) and not code_verifier:
            raise MissingParameter(
                "code_verifier is required for the PKCE flow. "
                "Run scripts/pkce_helper.py before authorizing."
            )

        body = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": identity.redirect_uri,
        }
        if code_verifier:
            body["code_verifier"] = code_verifier

        headers, body = client_authentication(identity, body)

        logger.info(
            f"Exchanging authorization code for tokens ({identity.mode.value} client)"
        )
        token_pair = request_tokens(
            self.token_url, headers, body, self.timeout, "Token exchange"
        )
        logger.info("Successfully obtained tokens")
        return token_pair
