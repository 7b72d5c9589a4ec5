"""Data models for the trending-repository posting pipeline."""

from dataclasses import dataclass, field
from typing import List, Optional

from src.credentials.rotation import PublishOutcome


@dataclass
class TrendingRepository:
    """
    One entry scraped from the trending page.

    Attributes:
        name: "owner / repo" as shown on the page
        url: https://github.com/owner/repo
        description: Repository description
        stars: Star count as displayed (e.g. "1,234")
        language: Primary language, or "Unknown"
    """

    name: str
    url: str
    description: str = ""
    stars: str = "0"
    language: str = "Unknown"


@dataclass
class RunResult:
    """
    Outcome of one bot run.

    Attributes:
        posted: Whether a post was published
        repository: Repository that was posted about
        tweet_id: ID of the created post
        publish_outcome: Result of publishing a rotated refresh token
        warnings: Non-fatal problems the operator should look at
    """

    posted: bool
    repository: Optional[TrendingRepository] = None
    tweet_id: Optional[str] = None
    publish_outcome: Optional[PublishOutcome] = None
    warnings: List[str] = field(default_factory=list)
