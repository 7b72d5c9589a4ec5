"""Collaborator interfaces for the posting pipeline.

The pipeline depends on three external services that are implemented
outside this package: the trending page scraper, the text generator and
the issue tracker used to remember what was already posted.
"""

from abc import ABC, abstractmethod
from typing import List

from .models import TrendingRepository


class TrendingSource(ABC):
    """Supplies the current trending repositories, most popular first."""

    @abstractmethod
    def fetch_trending(self) -> List[TrendingRepository]:
        """Fetch trending repositories.

        Returns:
            Up to ten repositories; empty if the page had none
        """
        pass


class PostTextGenerator(ABC):
    """Drafts the post text for a repository."""

    @abstractmethod
    def generate(self, repository: TrendingRepository) -> str:
        """Draft post text (without the repository URL).

        Args:
            repository: Repository to write about

        Returns:
            Post text, at most a few hundred characters
        """
        pass


class PostLedger(ABC):
    """Records posted repositories so each is posted only once.

    Example:
        >>> class IssueLedger(PostLedger):
        >>>     def is_posted(self, name: str) -> bool:
        >>>         return any(name in i.title for i in list_issues(label="posted"))
        >>>
        >>>     def record(self, repository: TrendingRepository) -> None:
        >>>         create_issue(title=f"Posted: {repository.name}", labels=["posted"])
    """

    @abstractmethod
    def is_posted(self, name: str) -> bool:
        """Whether a repository has already been posted."""
        pass

    @abstractmethod
    def record(self, repository: TrendingRepository) -> None:
        """Remember that a repository was posted."""
        pass
