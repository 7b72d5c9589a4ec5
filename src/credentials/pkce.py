"""
PKCE (RFC 7636) support for the X authorization-code flow.

Generates the code verifier / code challenge pair, assembles the
authorization URL, and keeps verifiers on disk keyed by ``state`` because
the code exchange runs in a separate process after the user has approved
the app in a browser.
"""

import base64
import hashlib
import json
import logging
import os
import secrets
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlencode

from .exceptions import TokenStorageError

logger = logging.getLogger(__name__)

AUTHORIZATION_URL = "https://twitter.com/i/oauth2/authorize"

# 64 random bytes (512 bits) -> 86 base64url chars; RFC 7636 allows 43-128
_VERIFIER_BYTES = 64
_VERIFIER_MAX_LENGTH = 128


def _base64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def code_challenge_for(verifier: str) -> str:
    """Return the S256 code challenge for a verifier."""
    return _base64url(hashlib.sha256(verifier.encode("ascii")).digest())


@dataclass(frozen=True)
class PKCEPair:
    """Code verifier and its derived S256 challenge."""

    verifier: str = field(repr=False)
    challenge: str

    @classmethod
    def from_verifier(cls, verifier: str) -> "PKCEPair":
        return cls(verifier=verifier, challenge=code_challenge_for(verifier))


def generate_pkce_pair() -> PKCEPair:
    """
    Generate a fresh PKCE pair.

    Returns:
        PKCEPair with a URL-safe verifier and its S256 challenge
    """
    verifier = _base64url(secrets.token_bytes(_VERIFIER_BYTES))[:_VERIFIER_MAX_LENGTH]
    return PKCEPair.from_verifier(verifier)


def generate_state() -> str:
    """Random opaque ``state`` value for CSRF protection."""
    return _base64url(secrets.token_bytes(12))


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    scope: str,
    state: str,
    code_challenge: str,
    authorization_url: str = AUTHORIZATION_URL,
) -> str:
    """
    Build the X authorization URL the user opens in a browser.

    Args:
        client_id: X app client ID
        redirect_uri: Registered callback URL
        scope: Space-separated scopes
        state: Opaque value echoed back on the callback
        code_challenge: S256 challenge from the PKCE pair
        authorization_url: Authorize endpoint

    Returns:
        Complete authorization URL with query parameters
    """
    params = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": scope,
        "state": state,
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
    }
    return f"{authorization_url}?{urlencode(params)}"


@dataclass
class PKCERecord:
    """
    A pending authorization, persisted until its code has been exchanged.

    Attributes:
        state: Value sent in the authorization URL
        code_verifier: Verifier for the challenge that was sent
        client_id: Client the authorization was started for
        redirect_uri: Callback URL used in the authorization URL
        scope: Scopes requested
        created_at: ISO timestamp
    """

    state: str
    code_verifier: str = field(repr=False)
    client_id: str = ""
    redirect_uri: str = ""
    scope: str = ""
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


class PKCEStore:
    """
    File-based store of pending PKCE verifiers, keyed by state.

    The file holds a JSON object mapping state to record and is written with
    user-only permissions (600).
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def _read(self) -> Dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise TokenStorageError(f"Corrupt PKCE file {self.path}: {e}") from e
        except (IOError, OSError) as e:
            raise TokenStorageError(f"Could not read PKCE file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise TokenStorageError(f"Corrupt PKCE file {self.path}: expected an object")
        return data

    def _write(self, data: Dict[str, dict]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
        except (IOError, OSError) as e:
            logger.error(f"Failed to write PKCE file: {e}")
            raise TokenStorageError(f"Failed to write PKCE file {self.path}: {e}") from e

    def save(self, record: PKCERecord) -> None:
        """
        Persist a pending authorization.

        Raises:
            TokenStorageError: If the file cannot be written
        """
        data = self._read()
        data[record.state] = asdict(record)
        self._write(data)
        logger.info(f"Saved PKCE verifier for state {record.state} to {self.path}")

    def load(self, state: Optional[str] = None) -> Optional[PKCERecord]:
        """
        Load a pending authorization.

        Args:
            state: State to look up; the most recent record when omitted

        Returns:
            PKCERecord, or None if nothing matches
        """
        data = self._read()
        if not data:
            return None

        if not all(isinstance(r, dict) for r in data.values()):
            raise TokenStorageError(f"Corrupt PKCE file {self.path}: expected an object per state")

        if state is None:
            raw = max(data.values(), key=lambda r: r.get("created_at", ""))
        else:
            raw = data.get(state)
            if raw is None:
                return None

        try:
            return PKCERecord(**raw)
        except TypeError as e:
            raise TokenStorageError(f"Corrupt PKCE record in {self.path}: {e}") from e

    def discard(self, state: str) -> bool:
        """
        Remove a verifier after it has been used.

        Returns:
            True if a record was removed
        """
        data = self._read()
        if state not in data:
            return False
        del data[state]
        if data:
            self._write(data)
        else:
            self.path.unlink()
        logger.debug(f"Discarded PKCE verifier for state {state}")
        return True
