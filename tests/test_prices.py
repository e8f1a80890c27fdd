"""Tests for the CryptoCompare price lookup."""

import httpx
import pytest

from coin_sentiment.exceptions import PriceLookupError
from coin_sentiment.prices import CryptoCompareClient


def price_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestCryptoCompareClient:
    """Tests for CryptoCompareClient.get_price."""

    @pytest.mark.asyncio
    async def test_returns_price(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"USD": 64250.12})

        async with price_client(handler) as client:
            price = await CryptoCompareClient(client=client).get_price("btc")

        assert price == 64250.12
        assert requests[0].url.params["fsym"] == "BTC"
        assert requests[0].url.params["tsyms"] == "USD"
        assert "authorization" not in requests[0].headers

    @pytest.mark.asyncio
    async def test_api_key_and_currency(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"EUR": 1.5})

        async with price_client(handler) as client:
            lookup = CryptoCompareClient(api_key="cc-key", currency="eur", client=client)
            price = await lookup.get_price("ADA")

        assert price == 1.5
        assert requests[0].url.params["tsyms"] == "EUR"
        assert requests[0].headers["authorization"] == "Apikey cc-key"

    @pytest.mark.asyncio
    async def test_error_payload_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"Response": "Error", "Message": "fsym param is invalid"},
            )

        async with price_client(handler) as client:
            with pytest.raises(PriceLookupError) as exc_info:
                await CryptoCompareClient(client=client).get_price("NOPE")

        assert exc_info.value.acronym == "NOPE"
        assert "fsym param is invalid" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_currency_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={})

        async with price_client(handler) as client:
            with pytest.raises(PriceLookupError):
                await CryptoCompareClient(client=client).get_price("BTC")

    @pytest.mark.asyncio
    async def test_http_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="upstream error")

        async with price_client(handler) as client:
            with pytest.raises(PriceLookupError):
                await CryptoCompareClient(client=client).get_price("BTC")

    @pytest.mark.asyncio
    async def test_timeout_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with price_client(handler) as client:
            with pytest.raises(PriceLookupError):
                await CryptoCompareClient(client=client).get_price("BTC")
