"""Point-in-time crypto price lookup."""

import logging

import httpx

from coin_sentiment.exceptions import PriceLookupError

logger = logging.getLogger(__name__)

CRYPTOCOMPARE_PRICE_URL = "https://min-api.cryptocompare.com/data/price"


class CryptoCompareClient:
    """Price lookup backed by the CryptoCompare single-price endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        currency: str = "USD",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        """Initialize the client.

        Args:
            api_key: Optional API key (anonymous access is rate-limited)
            currency: Quote currency, e.g. "USD"
            client: Shared HTTP client (None = per-request client)
            timeout: HTTP request timeout in seconds
        """
        self.api_key = api_key
        self.currency = currency.upper()
        self.timeout = timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"authorization": f"Apikey {self.api_key}"}

    async def _request(self, client: httpx.AsyncClient, acronym: str) -> httpx.Response:
        response = await client.get(
            CRYPTOCOMPARE_PRICE_URL,
            params={"fsym": acronym, "tsyms": self.currency},
            headers=self._headers(),
        )
        response.raise_for_status()
        return response

    async def get_price(self, acronym: str) -> float:
        """Get the current price of a coin.

        Args:
            acronym: Coin ticker, e.g. "BTC"

        Returns:
            Price in the configured quote currency

        Raises:
            PriceLookupError: On HTTP failure or an error/empty payload
        """
        symbol = acronym.upper()
        try:
            if self._client is not None:
                response = await self._request(self._client, symbol)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._request(client, symbol)
            data = response.json()
        except httpx.HTTPError as e:
            raise PriceLookupError(f"[CryptoCompare] Request failed: {e}", acronym=symbol) from e
        except ValueError as e:
            raise PriceLookupError("[CryptoCompare] Response is not valid JSON", acronym=symbol) from e

        if not isinstance(data, dict):
            raise PriceLookupError("[CryptoCompare] Unexpected response shape", acronym=symbol)
        if data.get("Response") == "Error":
            raise PriceLookupError(
                f"[CryptoCompare] {data.get('Message', 'unknown error')}", acronym=symbol
            )
        if self.currency not in data:
            raise PriceLookupError(
                f"[CryptoCompare] No {self.currency} price for {symbol}", acronym=symbol
            )

        price = float(data[self.currency])
        logger.debug(f"[CryptoCompare] {symbol} = {price} {self.currency}")
        return price
