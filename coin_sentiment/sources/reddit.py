"""Reddit public search adapter."""

from typing import Any

import httpx

from coin_sentiment.config import DEFAULT_REDDIT_USER_AGENT
from coin_sentiment.models import RawDocument, SourceId, TrackedCrypto
from coin_sentiment.sources.base import DEFAULT_TIMEOUT_SECONDS, HttpSourceAdapter

REDDIT_SEARCH_URL = "https://www.reddit.com/search.json"

# Post fields carried through as document metadata
POST_FIELDS = [
    "id",
    "subreddit",
    "author",
    "created_utc",
    "score",
    "num_comments",
    "upvote_ratio",
    "permalink",
    "url",
]


class RedditAdapter(HttpSourceAdapter):
    """Fetch the newest Reddit posts mentioning a coin."""

    MAX_LIMIT = 100

    def __init__(
        self,
        user_agent: str = DEFAULT_REDDIT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        default_limit: int | None = None,
    ):
        super().__init__(client=client, timeout=timeout, default_limit=default_limit)
        self.user_agent = user_agent

    @property
    def source_id(self) -> SourceId:
        return SourceId.REDDIT

    def build_query(self, crypto: TrackedCrypto) -> str:
        return f"{crypto.name} OR {crypto.acronym}"

    def build_request(self, query: str, limit: int) -> tuple[str, dict[str, Any], dict[str, str]]:
        params = {"q": query, "limit": limit, "sort": "new", "type": "link"}
        headers = {"User-Agent": self.user_agent}
        return REDDIT_SEARCH_URL, params, headers

    def parse_response(
        self, payload: dict[str, Any], limit: int
    ) -> tuple[list[RawDocument], dict[str, Any]]:
        listing = payload.get("data")
        if not isinstance(listing, dict) or not isinstance(listing.get("children"), list):
            raise self.malformed("missing 'data.children'")

        documents = []
        for child in listing["children"]:
            post = child.get("data") if isinstance(child, dict) else None
            if not isinstance(post, dict):
                raise self.malformed("listing child without 'data'")

            title = post.get("title") or ""
            selftext = post.get("selftext") or ""
            text = f"{title}\n{selftext}" if selftext else title
            metadata = {k: post[k] for k in POST_FIELDS if k in post}
            documents.append(RawDocument(text=text, metadata=metadata))

        return documents, {"after": listing.get("after")}
