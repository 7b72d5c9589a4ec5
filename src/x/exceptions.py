"""Exceptions for X API client."""

from typing import Optional


class XAPIError(Exception):
    """Base exception for X API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class XAuthenticationError(XAPIError):
    """
    The access token was rejected (401).

    Resolution:
        1. Check that X_OAUTH2_REFRESH_TOKEN holds the latest refresh token
        2. If not, re-authorize: python scripts/pkce_helper.py
    """

    pass


class XForbiddenError(XAPIError):
    """
    The token is valid but not allowed to perform the action (403).

    Usually the app lacks "Read and write" permissions, the token lacks the
    tweet.write scope, or the project tier does not allow posting.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = 403,
        access_level: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message, status_code)
        self.access_level = access_level
        self.detail = detail


class XRateLimitError(XAPIError):
    """API rate limit exceeded."""

    pass
