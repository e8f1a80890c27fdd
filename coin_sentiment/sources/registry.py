"""Source adapter registry.

Adapters are built once at startup and looked up by SourceId; the only
string lookup is the initial parsing of the operator's selector.
"""

import httpx

from coin_sentiment.config import PipelineConfig
from coin_sentiment.exceptions import UnknownSourceError
from coin_sentiment.models import SourceId
from coin_sentiment.sources.base import HttpSourceAdapter
from coin_sentiment.sources.bing import BingAdapter
from coin_sentiment.sources.gnews import GNewsAdapter
from coin_sentiment.sources.reddit import RedditAdapter
from coin_sentiment.sources.twitter import TwitterAdapter


def parse_source_id(name: str | SourceId) -> SourceId:
    """Map an operator-supplied source name to a SourceId.

    Matching is case-insensitive on both value ("twitter") and member name
    ("TWITTER").

    Raises:
        UnknownSourceError: If the name is not a supported source
    """
    if isinstance(name, SourceId):
        return name
    key = (name or "").strip().lower()
    for source_id in SourceId:
        if source_id.value == key:
            return source_id
    raise UnknownSourceError(name)


def build_adapters(
    config: PipelineConfig,
    client: httpx.AsyncClient | None = None,
) -> dict[SourceId, HttpSourceAdapter]:
    """Build one adapter per supported source.

    Missing credentials do not fail here; the adapter raises
    MissingCredentialsError when it is actually used.

    Args:
        config: Pipeline configuration
        client: Shared HTTP client (None = per-request clients)

    Returns:
        Mapping from SourceId to adapter
    """
    common = {
        "client": client,
        "timeout": config.http_timeout,
        "default_limit": config.fetch_limit,
    }
    return {
        SourceId.TWITTER: TwitterAdapter(config.twitter_bearer_token, **common),
        SourceId.REDDIT: RedditAdapter(config.reddit_user_agent, **common),
        SourceId.BING: BingAdapter(config.bing_api_key, **common),
        SourceId.GNEWS: GNewsAdapter(config.gnews_api_key, **common),
    }
