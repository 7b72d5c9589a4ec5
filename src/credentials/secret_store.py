"""
GitHub Actions secret store client.

Repository secrets are write-only: the value is sealed against the
repository's current public key (libsodium sealed box) and uploaded. The
API never returns secret values, so the response status is the only
confirmation of a write.
"""

import binascii
import logging
from dataclasses import dataclass, field

import requests
from nacl import encoding, exceptions as nacl_exceptions, public

from .config import SecretStoreConfig
from .exceptions import SecretPublishError, SecretStoreNetworkError

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"


@dataclass(frozen=True)
class SecretStorePublicKey:
    """Public key advertised by the store, with the id writes must quote."""

    key: str
    key_id: str


@dataclass(frozen=True)
class SealedSecret:
    """A value sealed for one upsert against one store key."""

    encrypted_value: str = field(repr=False)
    key_id: str


def seal_secret(public_key: SecretStorePublicKey, value: str) -> SealedSecret:
    """
    Seal a value for the store with an anonymous sealed box.

    Only the store's public key is needed; only the store's private key can
    open the result.

    Raises:
        SecretPublishError: If the advertised key is not a valid Curve25519 key
    """
    try:
        recipient = public.PublicKey(public_key.key.encode("utf-8"), encoding.Base64Encoder)
    except (nacl_exceptions.CryptoError, binascii.Error, ValueError, TypeError, AttributeError) as e:
        raise SecretPublishError(
            f"Secret store returned an unusable public key (key_id {public_key.key_id}): {e}"
        ) from e

    encrypted = public.SealedBox(recipient).encrypt(value.encode("utf-8"), encoding.Base64Encoder)
    return SealedSecret(encrypted_value=encrypted.decode("utf-8"), key_id=public_key.key_id)


class GitHubSecretStore:
    """
    Minimal client for the GitHub Actions repository secrets API.

    Example:
        store = GitHubSecretStore(SecretStoreConfig.from_env())
        key = store.get_public_key()
        status = store.put_secret("X_OAUTH2_REFRESH_TOKEN", seal_secret(key, value))
    """

    def __init__(self, config: SecretStoreConfig):
        self.config = config

    @property
    def _secrets_url(self) -> str:
        return f"{self.config.api_url.rstrip('/')}/repos/{self.config.repository}/actions/secrets"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def get_public_key(self) -> SecretStorePublicKey:
        """
        Fetch the repository's current secrets public key.

        Raises:
            SecretStoreNetworkError: On timeout or connection failure
            SecretPublishError: On non-200 or malformed response
        """
        url = f"{self._secrets_url}/public-key"
        try:
            response = requests.get(url, headers=self._headers(), timeout=self.config.request_timeout)
        except requests.RequestException as e:
            raise SecretStoreNetworkError(f"Network error fetching secret store public key: {e}") from e

        if response.status_code != 200:
            raise SecretPublishError(
                f"Fetching secret store public key failed with status {response.status_code}: "
                f"{response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SecretPublishError(f"Invalid public key response from secret store: {e}") from e

        if not isinstance(data, dict):
            raise SecretPublishError("Invalid public key response from secret store: expected an object")

        key, key_id = data.get("key"), data.get("key_id")
        if not (isinstance(key, str) and key and isinstance(key_id, str) and key_id):
            raise SecretPublishError(
                "Invalid public key response from secret store: "
                "key and key_id must be non-empty strings"
            )
        return SecretStorePublicKey(key=key, key_id=key_id)

    def put_secret(self, name: str, sealed: SealedSecret) -> int:
        """
        Create or update a repository secret.

        Returns:
            HTTP status code of the write (201 created, 204 updated)

        Raises:
            SecretStoreNetworkError: On timeout or connection failure
        """
        url = f"{self._secrets_url}/{name}"
        try:
            response = requests.put(
                url,
                headers=self._headers(),
                json={"encrypted_value": sealed.encrypted_value, "key_id": sealed.key_id},
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise SecretStoreNetworkError(f"Network error writing secret {name}: {e}") from e

        logger.debug(f"PUT {url} -> {response.status_code}")
        return response.status_code
