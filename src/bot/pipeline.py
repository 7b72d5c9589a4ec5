"""
Trending repository posting pipeline.

One run picks the first trending repository that has not been posted yet,
drafts a post for it, publishes it with the run's credential session and
records it. Credentials are only touched once a repository has been
selected, so a run with nothing to post does not consume the refresh token.
"""

import logging
from typing import Optional

from src.credentials.session import CredentialSession

from .interfaces import PostLedger, PostTextGenerator, TrendingSource
from .models import RunResult, TrendingRepository

logger = logging.getLogger(__name__)


def fallback_post_text(repository: TrendingRepository) -> str:
    """Post text used when the generator fails or returns nothing."""
    language_tag = "".join(ch for ch in repository.language if ch.isalnum()) or "Code"
    return (
        f"🔥 GitHub trending: {repository.name}\n\n"
        f"{repository.description}\n\n"
        f"#GitHub #{language_tag} #OpenSource"
    )


def compose_post_text(text: str, url: str) -> str:
    """Append the repository link to the drafted text."""
    return f"{text.strip()}\n\n🔗 {url}"


class AutoPoster:
    """
    Runs the pipeline for one process invocation.

    Example:
        poster = AutoPoster(CredentialSession.from_env(), source, generator, ledger)
        result = poster.run()
    """

    def __init__(
        self,
        session: CredentialSession,
        source: TrendingSource,
        generator: PostTextGenerator,
        ledger: PostLedger,
    ):
        self.session = session
        self.source = source
        self.generator = generator
        self.ledger = ledger

    def select_repository(self) -> Optional[TrendingRepository]:
        """
        Pick the first trending repository not posted before.

        Returns:
            TrendingRepository, or None if there is nothing new
        """
        repositories = self.source.fetch_trending()
        logger.info(f"Found {len(repositories)} trending repositories")

        for repository in repositories:
            try:
                if self.ledger.is_posted(repository.name):
                    continue
            except Exception as e:
                # Ledger unavailable: treat as not posted
                logger.error(f"Error checking duplicates for {repository.name}: {e}")
            return repository

        return None

    def draft(self, repository: TrendingRepository) -> str:
        try:
            text = self.generator.generate(repository)
        except Exception as e:
            logger.error(f"Error generating post text: {e}")
            return fallback_post_text(repository)
        return text.strip() if text and text.strip() else fallback_post_text(repository)

    def run(self) -> RunResult:
        """
        Run the pipeline once.

        Returns:
            RunResult; a failed refresh token publication is a warning

        Raises:
            ConfigurationError: If credentials are not configured
            TokenEndpointError: If the access token cannot be refreshed
            XAPIError: If the post is rejected
        """
        logger.info("Starting GitHub trending X bot")

        repository = self.select_repository()
        if repository is None:
            logger.info("All trending repositories have already been posted")
            return RunResult(posted=False)

        logger.info(f"Selected repository: {repository.name}")

        client = self.session.get_client()
        result = RunResult(posted=False, repository=repository)

        outcome = self.session.publish_outcome
        result.publish_outcome = outcome
        if outcome is not None and not outcome.ok:
            warning = f"Rotated refresh token was not published: {outcome.reason}"
            logger.warning(warning)
            result.warnings.append(warning)

        text = compose_post_text(self.draft(repository), repository.url)
        tweet = client.post_tweet(text)
        result.posted = True
        result.tweet_id = tweet.get("id")

        try:
            self.ledger.record(repository)
            logger.info(f"Recorded posted repository: {repository.name}")
        except Exception as e:
            warning = f"Posted {repository.name} but could not record it: {e}"
            logger.error(warning)
            result.warnings.append(warning)

        logger.info("Process completed successfully")
        return result
