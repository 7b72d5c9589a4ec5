"""
GitHub trending X bot pipeline.

Scraping, text generation and the posted-repository ledger are supplied
by the caller through the interfaces in ``interfaces``; this package only
sequences them around a credential session.
"""

from .interfaces import PostLedger, PostTextGenerator, TrendingSource
from .models import RunResult, TrendingRepository
from .pipeline import AutoPoster, compose_post_text, fallback_post_text

__all__ = [
    "AutoPoster",
    "RunResult",
    "TrendingRepository",
    "TrendingSource",
    "PostTextGenerator",
    "PostLedger",
    "compose_post_text",
    "fallback_post_text",
]
