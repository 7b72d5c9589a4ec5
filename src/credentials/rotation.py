"""
Publication of rotated refresh tokens.

When a refresh returns a new refresh token the old one is already invalid
on X's side, so the new one must reach the secret store before the next
run. A failed publish is reported as a typed outcome rather than raised:
the current run still holds a usable access token and should finish its
own work, while the operator is told to intervene.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import SecretPublishError, TokenStorageError
from .secret_store import GitHubSecretStore, seal_secret
from .token_storage import TokenPair, TokenStorage, fingerprint

logger = logging.getLogger(__name__)


class PublishStatus(Enum):
    PUBLISHED = "published"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PublishOutcome:
    """
    Result of a publish attempt.

    Attributes:
        status: PUBLISHED, SKIPPED or FAILED
        reason: Why it was skipped or failed, or "created"/"updated"
        status_code: HTTP status of the write, when one was made
    """

    status: PublishStatus
    reason: str = ""
    status_code: Optional[int] = None

    @classmethod
    def published(cls, status_code: int) -> "PublishOutcome":
        reason = "created" if status_code == 201 else "updated"
        return cls(PublishStatus.PUBLISHED, reason, status_code)

    @classmethod
    def skipped(cls, reason: str) -> "PublishOutcome":
        return cls(PublishStatus.SKIPPED, reason)

    @classmethod
    def failed(cls, reason: str, status_code: Optional[int] = None) -> "PublishOutcome":
        return cls(PublishStatus.FAILED, reason, status_code)

    @property
    def ok(self) -> bool:
        """False only when a rotated token was not persisted."""
        return self.status is not PublishStatus.FAILED


class SecretRotationPublisher:
    """
    Seals a rotated refresh token and upserts it into the secret store.

    Args:
        store: Secret store client (None when the store is not configured)
        secret_name: Name of the refresh token secret
        dry_run: Log the decision but make no calls
        recovery_storage: Where to write the rotated pair if publishing fails
    """

    SUCCESS_STATUSES = (201, 204)

    def __init__(
        self,
        store: Optional[GitHubSecretStore],
        secret_name: str,
        dry_run: bool = False,
        recovery_storage: Optional[TokenStorage] = None,
    ):
        self.store = store
        self.secret_name = secret_name
        self.dry_run = dry_run
        self.recovery_storage = recovery_storage

    def publish_if_rotated(self, token_pair: TokenPair) -> PublishOutcome:
        """
        Publish the new refresh token if the server rotated it.

        Returns:
            PublishOutcome; never raises for store failures
        """
        if not token_pair.is_rotated:
            logger.info("Refresh token was not rotated; nothing to publish")
            return PublishOutcome.skipped("not rotated")

        token_id = fingerprint(token_pair.refresh_token)

        if self.dry_run:
            logger.warning(
                f"Dry run: not publishing rotated refresh token {token_id} "
                f"to secret {self.secret_name}. The stored refresh token is now stale."
            )
            return PublishOutcome.skipped("dry run")

        try:
            status_code = self._publish(token_pair.refresh_token)
        except SecretPublishError as e:
            return self.record_failure(token_pair, str(e), e.status_code)

        logger.info(
            f"Published rotated refresh token {token_id} to secret {self.secret_name} "
            f"(HTTP {status_code})"
        )
        return PublishOutcome.published(status_code)

    def _publish(self, refresh_token: str) -> int:
        """
        Fetch key, seal, upsert.

        Raises:
            SecretPublishError: On any failure, including unexpected statuses
        """
        if self.store is None or not self.store.config.is_configured:
            raise SecretPublishError(
                "Secret store is not configured (set GITHUB_REPOSITORY and GH_SECRETS_TOKEN)"
            )

        public_key = self.store.get_public_key()
        sealed = seal_secret(public_key, refresh_token)
        status_code = self.store.put_secret(self.secret_name, sealed)

        if status_code not in self.SUCCESS_STATUSES:
            raise SecretPublishError(
                f"Secret store rejected write of {self.secret_name} with status "
                f"{status_code} (key_id {public_key.key_id})",
                status_code=status_code,
            )
        return status_code

    def record_failure(
        self, token_pair: TokenPair, reason: str, status_code: Optional[int] = None
    ) -> PublishOutcome:
        """
        Report a rotated token that could not be published.

        Logs the failure, writes the recovery file when one is configured and
        returns the FAILED outcome.
        """
        logger.error(
            f"Failed to publish rotated refresh token {fingerprint(token_pair.refresh_token)}: {reason}"
        )
        self._write_recovery(token_pair)
        return PublishOutcome.failed(reason, status_code)

    def _write_recovery(self, token_pair: TokenPair) -> None:
        if self.recovery_storage is not None:
            try:
                self.recovery_storage.save(token_pair)
                logger.error(
                    f"Rotated tokens written to {self.recovery_storage.token_file}. "
                    f"Update the {self.secret_name} secret from that file manually."
                )
                return
            except TokenStorageError as e:
                logger.error(f"Could not write recovery file: {e}")

        logger.error(
            f"The previous refresh token is no longer valid. Re-authorize with "
            f"scripts/pkce_helper.py and update the {self.secret_name} secret "
            f"before the next run."
        )
