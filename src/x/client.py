"""
X API client with OAuth 2.0 user-context authentication.

This module provides an authenticated HTTP client for the X API v2. It
handles:

- Bearer authentication with an access token from the credentials module
- Error handling and logging
- 403 diagnostics (x-access-level header, API detail, scope hints)

Requests are not retried: a retried post can publish the same text twice.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests

from . import endpoints
from .exceptions import XAPIError, XAuthenticationError, XForbiddenError, XRateLimitError

logger = logging.getLogger(__name__)


class XClient:
    """
    Authenticated HTTP client for the X API v2.

    Example:
        from src.credentials.session import CredentialSession

        client = CredentialSession.from_env().get_client()
        tweet = client.post_tweet("hello")
    """

    BASE_URL = "https://api.twitter.com"

    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize X API client.

        Args:
            access_token: OAuth 2.0 user-context access token
            base_url: API base URL (default: https://api.twitter.com)
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            }
        )

    def _get_full_url(self, endpoint: str) -> str:
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return urljoin(self.base_url, endpoint)

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        Make authenticated HTTP request to the X API.

        Raises:
            XAuthenticationError: If the token is rejected (401)
            XForbiddenError: If the token lacks permission (403)
            XRateLimitError: If rate limit exceeded (429)
            XAPIError: For other API errors and network failures
        """
        url = self._get_full_url(endpoint)
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method, url, params=params, json=json_data, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error calling X API: {e}")
            raise XAPIError(f"Network error: {e}") from e

        if response.status_code == 401:
            logger.error(f"Authentication failed (401): {response.text}")
            raise XAuthenticationError(
                "X rejected the access token. The refresh token may have been "
                "revoked; re-authorize with scripts/pkce_helper.py.",
                status_code=401,
            )

        if response.status_code == 403:
            raise self._forbidden(response)

        if response.status_code == 429:
            reset = response.headers.get("x-rate-limit-reset")
            logger.warning(f"Rate limit exceeded (429), resets at {reset}")
            raise XRateLimitError(
                "X API rate limit exceeded. Please wait before retrying.",
                status_code=429,
            )

        if not response.ok:
            logger.error(f"API error ({response.status_code}): {response.text}")
            raise XAPIError(
                f"X API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        logger.debug(f"Response: {response.status_code}")
        return response

    def _forbidden(self, response: requests.Response) -> XForbiddenError:
        access_level = response.headers.get("x-access-level")
        detail = None
        try:
            payload = response.json()
            if isinstance(payload, dict):
                detail = payload.get("detail") or payload.get("title")
        except ValueError:
            pass

        logger.error(f"Forbidden (403): {response.text}")
        if access_level:
            logger.error(f"x-access-level: {access_level}")
        if detail:
            logger.error(f"X API detail: {detail}")
        logger.error(
            "Hint: ensure the X project tier allows posting and the OAuth 2.0 "
            "token has the tweet.write scope. In the Developer Portal enable "
            "user authentication with Read and write, then re-authorize."
        )

        message = "X API refused the request (403)"
        if detail:
            message += f": {detail}"
        return XForbiddenError(message, access_level=access_level, detail=detail)

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._request("GET", endpoint, params=params)
        return response.json()

    def post(self, endpoint: str, json_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._request("POST", endpoint, json_data=json_data)
        return response.json()

    def post_tweet(self, text: str) -> Dict[str, Any]:
        """
        Publish a post.

        Args:
            text: Post text

        Returns:
            The created post's data, e.g. {"id": "...", "text": "..."}

        Raises:
            XForbiddenError: If the token cannot write
            XAPIError: For other API errors
        """
        data = self.post(endpoints.TWEETS, json_data={"text": text})
        tweet = data.get("data", {})
        logger.info(f"Posted tweet {tweet.get('id')}")
        return tweet

    def get_me(self) -> Dict[str, Any]:
        """
        Look up the user the access token belongs to.

        Returns:
            User data, e.g. {"id": "...", "username": "..."}
        """
        return self.get(endpoints.USERS_ME).get("data", {})
