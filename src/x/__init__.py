"""
X API client module.

This module provides an authenticated client for the X (Twitter) API v2
using an OAuth 2.0 user-context access token obtained by the credentials
module. It includes:

- XClient: Authenticated HTTP client for API calls
- Post creation and authenticated-user lookup
"""

from .client import XClient
from .exceptions import XAPIError, XAuthenticationError, XForbiddenError, XRateLimitError

__all__ = [
    "XClient",
    "XAPIError",
    "XAuthenticationError",
    "XForbiddenError",
    "XRateLimitError",
]
