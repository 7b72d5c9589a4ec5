"""
Token pair model and local token file for X OAuth integration.

The refresh token normally lives in the remote secret store; the local
JSON file is only written by the interactive authorization scripts and as
a recovery copy when a rotated refresh token could not be published.
"""

import hashlib
import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import TokenEndpointError, TokenStorageError

logger = logging.getLogger(__name__)


def fingerprint(secret: str) -> str:
    """Short, non-reversible identifier of a secret, safe for logs."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:12]


@dataclass
class TokenPair:
    """
    Token endpoint result.

    Created by the code exchange or replaced wholesale by a refresh; never
    updated field by field.

    Attributes:
        access_token: Short-lived access token for API calls
        refresh_token: New refresh token, present only when the server issued one
        expires_in: Access token lifetime in seconds, if reported
        token_type: Token type (typically "bearer")
        scope: Granted OAuth scopes
        issued_at: ISO timestamp of when the pair was obtained
    """

    access_token: str = field(repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)
    expires_in: Optional[int] = None
    token_type: str = "bearer"
    scope: str = ""
    issued_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def expires_at(self) -> Optional[datetime]:
        """
        Calculate expiration datetime.

        Returns:
            Datetime when access token expires (timezone-aware UTC), or None
            if the server did not report a lifetime
        """
        if self.expires_in is None:
            return None
        issued = datetime.fromisoformat(self.issued_at)
        if issued.tzinfo is None:
            issued = issued.replace(tzinfo=timezone.utc)
        return issued + timedelta(seconds=self.expires_in)

    @property
    def is_rotated(self) -> bool:
        """Whether the server handed out a new refresh token."""
        return bool(self.refresh_token)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TokenPair":
        return cls(**data)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "TokenPair":
        """
        Build a TokenPair from a token endpoint JSON body.

        Raises:
            TokenEndpointError: If the body has no usable access_token
        """
        if not isinstance(data, dict) or not data.get("access_token"):
            raise TokenEndpointError(
                "Invalid response from token endpoint: missing access_token"
            )

        expires_in = data.get("expires_in")
        try:
            expires_in = int(expires_in) if expires_in is not None else None
        except (TypeError, ValueError) as e:
            raise TokenEndpointError(
                f"Invalid response from token endpoint: bad expires_in {expires_in!r}"
            ) from e

        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or None,
            expires_in=expires_in,
            token_type=data.get("token_type", "bearer"),
            scope=data.get("scope", ""),
        )


class TokenStorage:
    """
    File-based token storage (plaintext JSON, mode 600).
    """

    def __init__(self, token_file: str):
        """
        Initialize token storage.

        Args:
            token_file: Path to token storage file
        """
        self.token_file = Path(token_file)

    def _set_secure_permissions(self) -> None:
        """Set file permissions to user-only read/write (600)."""
        try:
            self.token_file.chmod(0o600)
            logger.debug(f"Set secure permissions (600) on {self.token_file}")
        except (OSError, PermissionError) as e:
            logger.warning(f"Could not set secure permissions: {e}")

    def save(self, token_pair: TokenPair) -> None:
        """
        Save tokens to file.

        Raises:
            TokenStorageError: If save operation fails
        """
        try:
            self.token_file.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(token_pair.to_dict(), f, indent=2)

            self._set_secure_permissions()

            logger.info(f"Tokens saved to {self.token_file}")
        except (IOError, OSError) as e:
            logger.error(f"Failed to save tokens: {e}")
            raise TokenStorageError(f"Failed to save tokens: {e}") from e

    def load(self) -> Optional[TokenPair]:
        """
        Load tokens from file.

        Returns:
            TokenPair if file exists and is valid, None otherwise
        """
        if not self.token_file.exists():
            logger.debug(f"No token file found at {self.token_file}")
            return None

        try:
            with open(self.token_file, "r") as f:
                data = json.load(f)

            return TokenPair.from_dict(data)

        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning(f"Invalid token file at {self.token_file}: {e}")
            return None
        except (IOError, OSError) as e:
            logger.warning(f"Could not read token file: {e}")
            return None

    def exists(self) -> bool:
        return self.token_file.exists()
