"""Bing News Search v7 adapter."""

from typing import Any

import httpx

from coin_sentiment.models import RawDocument, SourceId, TrackedCrypto
from coin_sentiment.sources.base import DEFAULT_TIMEOUT_SECONDS, HttpSourceAdapter

BING_NEWS_URL = "https://api.bing.microsoft.com/v7.0/news/search"
BING_MARKET = "en-US"


class BingAdapter(HttpSourceAdapter):
    """Fetch news articles about a coin from Bing News Search."""

    MAX_LIMIT = 100
    CREDENTIAL_ENV_VAR = "BING_SEARCH_API_KEY"

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
        return SourceId.BING

    @property
    def credential(self) -> str | None:
        return self._api_key

    def build_query(self, crypto: TrackedCrypto) -> str:
        return f"{crypto.name} crypto"

    def build_request(self, query: str, limit: int) -> tuple[str, dict[str, Any], dict[str, str]]:
        params = {"q": query, "count": limit, "mkt": BING_MARKET, "sortBy": "Date"}
        headers = {"Ocp-Apim-Subscription-Key": self._api_key or ""}
        return BING_NEWS_URL, params, headers

    def parse_response(
        self, payload: dict[str, Any], limit: int
    ) -> tuple[list[RawDocument], dict[str, Any]]:
        articles = payload.get("value")
        if not isinstance(articles, list):
            raise self.malformed("missing 'value' list")

        documents = []
        for article in articles:
            if not isinstance(article, dict):
                raise self.malformed("article is not an object")
            name = article.get("name") or ""
            description = article.get("description") or ""
            text = f"{name}. {description}" if description else name

            providers = article.get("provider") or []
            if not isinstance(providers, list) or not all(isinstance(p, dict) for p in providers):
                raise self.malformed("'provider' is not a list of objects")
            metadata = {
                "url": article.get("url"),
                "date_published": article.get("datePublished"),
                "provider": providers[0].get("name") if providers else None,
            }
            documents.append(RawDocument(text=text, metadata=metadata))

        return documents, {"total_estimated_matches": payload.get("totalEstimatedMatches")}
