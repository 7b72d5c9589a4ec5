"""
Credential exception classes for X OAuth 2.0 integration.

This module defines the exception hierarchy for all credential lifecycle
errors, providing clear error messages and recovery guidance.
"""

from typing import Optional


class CredentialError(Exception):
    """Base exception for all credential lifecycle errors."""

    pass


class ConfigurationError(CredentialError):
    """Configuration error (missing, invalid or contradictory inputs)."""

    pass


class MissingParameter(ConfigurationError):
    """A field required by the resolved flow is absent."""

    pass


class MissingConfiguration(ConfigurationError):
    """A required credential (e.g. the stored refresh token) is absent."""

    pass


class NetworkError(CredentialError):
    """Timeout or connection failure talking to a remote endpoint."""

    pass


class TokenEndpointError(CredentialError):
    """
    Non-2xx or malformed response from the authorization server.

    Attributes:
        status_code: HTTP status (None for network failures)
        error: Provider error code (e.g. "invalid_grant")
        error_description: Provider-supplied description
        access_level: Value of the x-access-level response header, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
        access_level: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.error_description = error_description
        self.access_level = access_level


class TokenEndpointNetworkError(TokenEndpointError, NetworkError):
    """Token endpoint could not be reached (timeout, connection reset)."""

    pass


class SecretPublishError(CredentialError):
    """Failed to publish a rotated refresh token to the secret store."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SecretStoreNetworkError(SecretPublishError, NetworkError):
    """Secret store could not be reached."""

    pass


class TokenStorageError(CredentialError):
    """Local storage operation failed (file I/O error)."""

    pass
