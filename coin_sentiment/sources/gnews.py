"""GNews search API adapter."""

from typing import Any

import httpx

from coin_sentiment.exceptions import PartialResponseError
from coin_sentiment.models import RawDocument, SourceId, TrackedCrypto
from coin_sentiment.sources.base import DEFAULT_TIMEOUT_SECONDS, HttpSourceAdapter

GNEWS_SEARCH_URL = "https://gnews.io/api/v4/search"


class GNewsAdapter(HttpSourceAdapter):
    """Fetch English news articles about a coin from GNews."""

    MAX_LIMIT = 100
    CREDENTIAL_ENV_VAR = "GNEWS_API_KEY"

    def __init__(
        self,
        api_key: str | None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        default_limit: int | None = None,
    ):
        super().__init__(client=client, timeout=timeout, default_limit=default_limit)
        self._api_key = api_key

    @property
    def source_id(self) -> SourceId:
        return SourceId.GNEWS

    @property
    def display_name(self) -> str:
        return "GNews"

    @property
    def credential(self) -> str | None:
        return self._api_key

    def build_query(self, crypto: TrackedCrypto) -> str:
        return crypto.name

    def build_request(self, query: str, limit: int) -> tuple[str, dict[str, Any], dict[str, str]]:
        params = {"q": query, "lang": "en", "max": limit, "token": self._api_key or ""}
        return GNEWS_SEARCH_URL, params, {}

    def parse_response(
        self, payload: dict[str, Any], limit: int
    ) -> tuple[list[RawDocument], dict[str, Any]]:
        errors = payload.get("errors")
        if errors:
            raise PartialResponseError(
                "[GNews] Provider reported errors",
                source=self.source_id.value,
                errors=errors if isinstance(errors, list) else [errors],
            )

        articles = payload.get("articles")
        if not isinstance(articles, list):
            raise self.malformed("missing 'articles' list")

        documents = []
        for article in articles:
            if not isinstance(article, dict):
                raise self.malformed("article is not an object")
            title = article.get("title") or ""
            description = article.get("description") or ""
            text = f"{title}. {description}" if description else title

            source = article.get("source") or {}
            metadata = {
                "url": article.get("url"),
                "published_at": article.get("publishedAt"),
                "publisher": source.get("name") if isinstance(source, dict) else None,
            }
            documents.append(RawDocument(text=text, metadata=metadata))

        return documents, {"total_articles": payload.get("totalArticles")}
