"""Tests for the source adapters using httpx.MockTransport."""

import httpx
import pytest

from coin_sentiment.config import PipelineConfig
from coin_sentiment.exceptions import (
    CoinSelectionError,
    FetchError,
    MalformedResponseError,
    MissingCredentialsError,
    PartialResponseError,
    UnknownSourceError,
)
from coin_sentiment.models import SourceId, TrackedCrypto
from coin_sentiment.sources import (
    BingAdapter,
    GNewsAdapter,
    RedditAdapter,
    TwitterAdapter,
    build_adapters,
    parse_source_id,
)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class RecordingHandler:
    """Transport handler returning a canned response and recording requests."""

    def __init__(self, status_code: int = 200, json: object = None, content: bytes | None = None):
        self.status_code = status_code
        self.json = json
        self.content = content
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.json)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def tweets(count: int) -> dict:
    return {
        "data": [
            {"id": str(i), "text": f"tweet {i} about $BTC", "author_id": "42"}
            for i in range(count)
        ],
        "meta": {"result_count": count, "newest_id": "0"},
    }


class TestParseSourceId:
    """Tests for source selector parsing."""

    @pytest.mark.parametrize("name", ["twitter", "TWITTER", " Twitter "])
    def test_case_insensitive(self, name: str) -> None:
        assert parse_source_id(name) == SourceId.TWITTER

    def test_passes_through_source_id(self) -> None:
        assert parse_source_id(SourceId.GNEWS) == SourceId.GNEWS

    @pytest.mark.parametrize("name", ["facebook", "", "tweets"])
    def test_unknown_source(self, name: str) -> None:
        with pytest.raises(UnknownSourceError):
            parse_source_id(name)


class TestBuildAdapters:
    """Tests for the adapter registry."""

    def test_one_adapter_per_source(self) -> None:
        adapters = build_adapters(PipelineConfig(fetch_limit=25))

        assert set(adapters) == set(SourceId)
        for source_id, adapter in adapters.items():
            assert adapter.source_id == source_id
            assert adapter.default_limit == 25


class TestTwitterAdapter:
    """Tests for TwitterAdapter."""

    @pytest.mark.asyncio
    async def test_fetch_builds_request_and_envelope(self, bitcoin) -> None:
        handler = RecordingHandler(json=tweets(3))
        async with mock_client(handler) as client:
            adapter = TwitterAdapter("token-123", client=client)
            envelope = await adapter.fetch(bitcoin, limit=50)

        request = handler.last
        assert request.url.path == "/2/tweets/search/recent"
        assert request.url.params["query"] == "BTC lang:en"
        assert request.url.params["max_results"] == "50"
        assert "public_metrics" in request.url.params["tweet.fields"]
        assert request.headers["Authorization"] == "Bearer token-123"

        assert envelope.source == SourceId.TWITTER
        assert [d.text for d in envelope.results] == [
            "tweet 0 about $BTC",
            "tweet 1 about $BTC",
            "tweet 2 about $BTC",
        ]
        assert envelope.results[0].metadata == {"id": "0", "author_id": "42"}
        assert envelope.meta["query"] == "BTC"
        assert envelope.meta["limit"] == 50
        assert envelope.meta["result_count"] == 3

    @pytest.mark.asyncio
    async def test_small_limit_requests_minimum_then_slices(self, bitcoin) -> None:
        handler = RecordingHandler(json=tweets(10))
        async with mock_client(handler) as client:
            envelope = await TwitterAdapter("t", client=client).fetch(bitcoin, limit=3)

        assert handler.last.url.params["max_results"] == "10"
        assert len(envelope.results) == 3

    @pytest.mark.asyncio
    async def test_limit_capped_at_max(self, bitcoin) -> None:
        handler = RecordingHandler(json=tweets(0))
        async with mock_client(handler) as client:
            envelope = await TwitterAdapter("t", client=client).fetch(bitcoin, limit=500)

        assert handler.last.url.params["max_results"] == "100"
        assert envelope.meta["limit"] == 100

    @pytest.mark.asyncio
    async def test_no_matches_gives_empty_results(self, bitcoin) -> None:
        handler = RecordingHandler(json={"meta": {"result_count": 0}})
        async with mock_client(handler) as client:
            envelope = await TwitterAdapter("t", client=client).fetch(bitcoin)

        assert envelope.results == []

    @pytest.mark.asyncio
    async def test_errors_alongside_data_fail_the_fetch(self, bitcoin) -> None:
        payload = tweets(2)
        payload["errors"] = [{"title": "Not Found Error", "detail": "Could not find tweet"}]
        handler = RecordingHandler(json=payload)

        async with mock_client(handler) as client:
            with pytest.raises(PartialResponseError) as exc_info:
                await TwitterAdapter("t", client=client).fetch(bitcoin)

        assert exc_info.value.source == "twitter"
        assert len(exc_info.value.errors) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_fetch_error(self, bitcoin) -> None:
        handler = RecordingHandler(status_code=429, json={"title": "Too Many Requests"})

        async with mock_client(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await TwitterAdapter("t", client=client).fetch(bitcoin)

        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_transport_error_is_fetch_error(self, bitcoin) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await TwitterAdapter("t", client=client).fetch(bitcoin)

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self, bitcoin) -> None:
        handler = RecordingHandler(content=b"<html>maintenance</html>")

        async with mock_client(handler) as client:
            with pytest.raises(MalformedResponseError):
                await TwitterAdapter("t", client=client).fetch(bitcoin)

    @pytest.mark.asyncio
    async def test_tweet_without_text_is_malformed(self, bitcoin) -> None:
        handler = RecordingHandler(json={"data": [{"id": "1"}]})

        async with mock_client(handler) as client:
            with pytest.raises(MalformedResponseError):
                await TwitterAdapter("t", client=client).fetch(bitcoin)

    @pytest.mark.asyncio
    async def test_missing_token_fails_before_request(self, bitcoin) -> None:
        handler = RecordingHandler(json=tweets(1))

        async with mock_client(handler) as client:
            with pytest.raises(MissingCredentialsError) as exc_info:
                await TwitterAdapter(None, client=client).fetch(bitcoin)

        assert exc_info.value.env_var == "TWITTER_BEARER_TOKEN"
        assert handler.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, -5])
    async def test_invalid_limit(self, bitcoin, limit: int) -> None:
        handler = RecordingHandler(json=tweets(1))

        async with mock_client(handler) as client:
            with pytest.raises(ValueError):
                await TwitterAdapter("t", client=client).fetch(bitcoin, limit=limit)

        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_empty_acronym_rejected(self) -> None:
        handler = RecordingHandler(json=tweets(1))

        async with mock_client(handler) as client:
            with pytest.raises(CoinSelectionError):
                await TwitterAdapter("t", client=client).fetch(TrackedCrypto("mystery", ""))

        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_fetch_public_uses_query(self) -> None:
        handler = RecordingHandler(json=tweets(1))

        async with mock_client(handler) as client:
            envelope = await TwitterAdapter("t", client=client).fetch_public("  solana etf ")

        assert handler.last.url.params["query"] == "solana etf lang:en"
        assert envelope.meta["query"] == "solana etf"

    @pytest.mark.asyncio
    async def test_fetch_public_rejects_empty_query(self) -> None:
        async with mock_client(RecordingHandler(json=tweets(1))) as client:
            with pytest.raises(CoinSelectionError):
                await TwitterAdapter("t", client=client).fetch_public("   ")


class TestRedditAdapter:
    """Tests for RedditAdapter."""

    @pytest.mark.asyncio
    async def test_fetch_parses_listing(self, bitcoin) -> None:
        payload = {
            "data": {
                "after": "t3_abc",
                "children": [
                    {"data": {"id": "p1", "title": "BTC breaks out", "selftext": "", "score": 10}},
                    {"data": {"id": "p2", "title": "Thoughts?", "selftext": "Holding my bitcoin"}},
                ],
            }
        }
        handler = RecordingHandler(json=payload)

        async with mock_client(handler) as client:
            envelope = await RedditAdapter("test-agent", client=client).fetch(bitcoin, limit=5)

        request = handler.last
        assert request.url.params["q"] == "bitcoin OR BTC"
        assert request.url.params["limit"] == "5"
        assert request.url.params["sort"] == "new"
        assert request.headers["User-Agent"] == "test-agent"

        assert envelope.source == SourceId.REDDIT
        assert [d.text for d in envelope.results] == [
            "BTC breaks out",
            "Thoughts?\nHolding my bitcoin",
        ]
        assert envelope.results[0].metadata == {"id": "p1", "score": 10}
        assert envelope.meta["after"] == "t3_abc"

    @pytest.mark.asyncio
    async def test_needs_no_credentials(self, bitcoin) -> None:
        handler = RecordingHandler(json={"data": {"children": []}})

        async with mock_client(handler) as client:
            envelope = await RedditAdapter(client=client).fetch(bitcoin)

        assert envelope.results == []

    @pytest.mark.asyncio
    async def test_missing_children_is_malformed(self, bitcoin) -> None:
        handler = RecordingHandler(json={"kind": "Listing"})

        async with mock_client(handler) as client:
            with pytest.raises(MalformedResponseError):
                await RedditAdapter(client=client).fetch(bitcoin)

    @pytest.mark.asyncio
    async def test_server_error_is_fetch_error(self, bitcoin) -> None:
        handler = RecordingHandler(status_code=503, json={})

        async with mock_client(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await RedditAdapter(client=client).fetch(bitcoin)

        assert exc_info.value.status_code == 503


class TestBingAdapter:
    """Tests for BingAdapter."""

    @pytest.mark.asyncio
    async def test_fetch_parses_articles(self, bitcoin) -> None:
        payload = {
            "totalEstimatedMatches": 1200,
            "value": [
                {
                    "name": "Bitcoin hits new high",
                    "description": "Investors pile in.",
                    "url": "https://example.com/a",
                    "datePublished": "2026-01-09T10:00:00Z",
                    "provider": [{"name": "Example News"}],
                },
                {"name": "Crypto roundup"},
            ],
        }
        handler = RecordingHandler(json=payload)

        async with mock_client(handler) as client:
            envelope = await BingAdapter("bing-key", client=client).fetch(bitcoin, limit=20)

        request = handler.last
        assert request.url.params["q"] == "bitcoin crypto"
        assert request.url.params["count"] == "20"
        assert request.headers["Ocp-Apim-Subscription-Key"] == "bing-key"

        assert envelope.results[0].text == "Bitcoin hits new high. Investors pile in."
        assert envelope.results[0].metadata["provider"] == "Example News"
        assert envelope.results[1].text == "Crypto roundup"
        assert envelope.results[1].metadata["provider"] is None
        assert envelope.meta["total_estimated_matches"] == 1200

    @pytest.mark.asyncio
    async def test_unauthorized_is_fetch_error(self, bitcoin) -> None:
        handler = RecordingHandler(status_code=401, json={"error": {"code": "401"}})

        async with mock_client(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await BingAdapter("bad", client=client).fetch(bitcoin)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "provider",
        [{"name": "Reuters"}, ["Reuters"], "Reuters"],
    )
    async def test_unexpected_provider_shape_is_malformed(self, bitcoin, provider) -> None:
        handler = RecordingHandler(json={"value": [{"name": "BTC up", "provider": provider}]})

        async with mock_client(handler) as client:
            with pytest.raises(MalformedResponseError):
                await BingAdapter("k", client=client).fetch(bitcoin)

    @pytest.mark.asyncio
    async def test_missing_key(self, bitcoin) -> None:
        with pytest.raises(MissingCredentialsError) as exc_info:
            await BingAdapter(None).fetch(bitcoin)

        assert exc_info.value.env_var == "BING_SEARCH_API_KEY"


class TestGNewsAdapter:
    """Tests for GNewsAdapter."""

    @pytest.mark.asyncio
    async def test_fetch_parses_articles(self, bitcoin) -> None:
        payload = {
            "totalArticles": 2,
            "articles": [
                {
                    "title": "Bitcoin ETF inflows",
                    "description": "Record week.",
                    "url": "https://example.com/b",
                    "publishedAt": "2026-01-09T09:00:00Z",
                    "source": {"name": "Example Wire"},
                }
            ],
        }
        handler = RecordingHandler(json=payload)

        async with mock_client(handler) as client:
            envelope = await GNewsAdapter("gnews-key", client=client).fetch(bitcoin, limit=10)

        request = handler.last
        assert request.url.params["q"] == "bitcoin"
        assert request.url.params["max"] == "10"
        assert request.url.params["token"] == "gnews-key"
        assert request.url.params["lang"] == "en"

        assert envelope.source == SourceId.GNEWS
        assert envelope.results[0].text == "Bitcoin ETF inflows. Record week."
        assert envelope.results[0].metadata["publisher"] == "Example Wire"
        assert envelope.meta["total_articles"] == 2

    @pytest.mark.asyncio
    async def test_provider_errors_fail_the_fetch(self, bitcoin) -> None:
        handler = RecordingHandler(json={"errors": ["You have reached your daily quota"]})

        async with mock_client(handler) as client:
            with pytest.raises(PartialResponseError) as exc_info:
                await GNewsAdapter("k", client=client).fetch(bitcoin)

        assert exc_info.value.errors == ["You have reached your daily quota"]

    @pytest.mark.asyncio
    async def test_non_object_body_is_malformed(self, bitcoin) -> None:
        handler = RecordingHandler(json=[1, 2, 3])

        async with mock_client(handler) as client:
            with pytest.raises(MalformedResponseError):
                await GNewsAdapter("k", client=client).fetch(bitcoin)

    @pytest.mark.asyncio
    async def test_missing_key_names_display_name(self, bitcoin) -> None:
        with pytest.raises(MissingCredentialsError) as exc_info:
            await GNewsAdapter("").fetch(bitcoin)

        assert exc_info.value.source == "GNews"
