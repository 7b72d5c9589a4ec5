"""
Client authentication flow resolution.

Decides whether the configured X app is used as a public (PKCE) client or
a confidential (client secret) client, and captures the decision once as a
tagged client identity that both the code exchange and every refresh use.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class FlowMode(Enum):
    """How the client authenticates against the token endpoint."""

    PKCE = "pkce"
    CONFIDENTIAL = "confidential"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["FlowMode"]:
        """
        Parse an explicit flow override.

        Args:
            value: "pkce", "public" or "confidential" (case-insensitive);
                   empty or None means no override

        Returns:
            FlowMode, or None when no override is given

        Raises:
            ConfigurationError: If the value is not a known flow
        """
        if value is None or not value.strip():
            return None

        normalized = value.strip().lower()
        if normalized in ("pkce", "public"):
            return cls.PKCE
        if normalized == "confidential":
            return cls.CONFIDENTIAL

        raise ConfigurationError(
            f"Unknown OAuth2 flow {value!r}. Use 'pkce' or 'confidential'."
        )


def resolve_flow(
    has_client_secret: bool, explicit_flow: Optional[FlowMode] = None
) -> FlowMode:
    """
    Resolve the authentication mode.

    An explicit override always wins. Otherwise a client secret implies a
    confidential client and its absence implies PKCE.
    """
    if explicit_flow is not None:
        return explicit_flow
    return FlowMode.CONFIDENTIAL if has_client_secret else FlowMode.PKCE


@dataclass(frozen=True)
class PublicClient:
    """Public client: proves possession with a PKCE verifier, holds no secret."""

    client_id: str
    redirect_uri: str = ""

    @property
    def mode(self) -> FlowMode:
        return FlowMode.PKCE


@dataclass(frozen=True)
class ConfidentialClient:
    """Confidential client: authenticates with HTTP Basic id:secret."""

    client_id: str
    client_secret: str = field(repr=False)
    redirect_uri: str = ""

    @property
    def mode(self) -> FlowMode:
        return FlowMode.CONFIDENTIAL


ClientIdentity = Union[PublicClient, ConfidentialClient]


def build_client_identity(
    client_id: str,
    client_secret: Optional[str] = None,
    redirect_uri: str = "",
    explicit_flow: Optional[FlowMode] = None,
) -> ClientIdentity:
    """
    Build the client identity once, at configuration load time.

    Args:
        client_id: X app client ID
        client_secret: Client secret, if the app is confidential
        redirect_uri: Registered callback URL
        explicit_flow: Optional override of the inferred mode

    Returns:
        PublicClient or ConfidentialClient

    Raises:
        ConfigurationError: If client_id is empty, or confidential mode is
                            requested without a client secret
    """
    if not client_id:
        raise ConfigurationError("client_id cannot be empty")

    mode = resolve_flow(bool(client_secret), explicit_flow)

    if mode is FlowMode.CONFIDENTIAL:
        if not client_secret:
            raise ConfigurationError(
                "OAuth2 flow is 'confidential' but no client secret is set. "
                "Set X_CLIENT_SECRET or use X_OAUTH2_FLOW=pkce."
            )
        logger.debug("Using confidential client authentication")
        return ConfidentialClient(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
        )

    if client_secret:
        logger.info("PKCE flow requested explicitly; client secret will not be sent")
    logger.debug("Using public (PKCE) client authentication")
    return PublicClient(client_id=client_id, redirect_uri=redirect_uri)
