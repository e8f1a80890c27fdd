"""Twitter API v2 recent-search adapter."""

from typing import Any

import httpx

from coin_sentiment.exceptions import PartialResponseError
from coin_sentiment.models import RawDocument, SourceId, TrackedCrypto
from coin_sentiment.sources.base import DEFAULT_TIMEOUT_SECONDS, HttpSourceAdapter

TWITTER_SEARCH_URL = "https://api.twitter.com/2/tweets/search/recent"

# The recent-search endpoint rejects max_results below 10
TWITTER_MIN_RESULTS = 10

TWEET_FIELDS = [
    "created_at",
    "entities",
    "in_reply_to_user_id",
    "public_metrics",
    "referenced_tweets",
    "source",
    "author_id",
]


class TwitterAdapter(HttpSourceAdapter):
    """Fetch recent English tweets mentioning a coin's acronym."""

    MAX_LIMIT = 100
    CREDENTIAL_ENV_VAR = "TWITTER_BEARER_TOKEN"

    def __init__(
        self,
        bearer_token: str | None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        default_limit: int | None = None,
    ):
        super().__init__(client=client, timeout=timeout, default_limit=default_limit)
        self._bearer_token = bearer_token

    @property
    def source_id(self) -> SourceId:
        return SourceId.TWITTER

    @property
    def credential(self) -> str | None:
        return self._bearer_token

    def build_query(self, crypto: TrackedCrypto) -> str:
        return crypto.acronym

    def build_request(self, query: str, limit: int) -> tuple[str, dict[str, Any], dict[str, str]]:
        params = {
            "query": f"{query} lang:en",
            "max_results": max(limit, TWITTER_MIN_RESULTS),
            "tweet.fields": ",".join(TWEET_FIELDS),
        }
        headers = {"Authorization": f"Bearer {self._bearer_token}"}
        return TWITTER_SEARCH_URL, params, headers

    def parse_response(
        self, payload: dict[str, Any], limit: int
    ) -> tuple[list[RawDocument], dict[str, Any]]:
        errors = payload.get("errors")
        if errors:
            raise PartialResponseError(
                f"[Twitter] Provider reported {len(errors)} error(s)",
                source=self.source_id.value,
                errors=errors,
            )

        # No matching tweets: the API omits "data" entirely
        tweets = payload.get("data", [])
        if not isinstance(tweets, list):
            raise self.malformed("'data' is not a list")

        documents = []
        for tweet in tweets:
            if not isinstance(tweet, dict) or not isinstance(tweet.get("text"), str):
                raise self.malformed("tweet without text")
            metadata = {k: v for k, v in tweet.items() if k != "text"}
            documents.append(RawDocument(text=tweet["text"], metadata=metadata))

        meta = payload.get("meta", {})
        return documents, dict(meta) if isinstance(meta, dict) else {}
