"""Source adapters.

Every adapter satisfies the SourceAdapter protocol ({fetch, fetch_public})
and normalizes its provider's response into a FetchEnvelope.
"""

from coin_sentiment.protocols import SourceAdapter
from coin_sentiment.sources.base import HttpSourceAdapter
from coin_sentiment.sources.bing import BingAdapter
from coin_sentiment.sources.gnews import GNewsAdapter
from coin_sentiment.sources.reddit import RedditAdapter
from coin_sentiment.sources.registry import build_adapters, parse_source_id
from coin_sentiment.sources.twitter import TwitterAdapter

__all__ = [
    "BingAdapter",
    "GNewsAdapter",
    "HttpSourceAdapter",
    "RedditAdapter",
    "SourceAdapter",
    "TwitterAdapter",
    "build_adapters",
    "parse_source_id",
]
