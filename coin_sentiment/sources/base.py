"""Base class for HTTP-backed source adapters.

Subclasses describe one provider's search endpoint and response shape;
this class owns limit validation, HTTP error mapping and envelope assembly.

Error mapping:
    httpx transport errors, timeouts, HTTP 4xx/5xx  -> FetchError
    non-JSON body or unexpected shape               -> MalformedResponseError
    provider errors reported next to data           -> PartialResponseError
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from coin_sentiment.exceptions import (
    CoinSelectionError,
    FetchError,
    MalformedResponseError,
    MissingCredentialsError,
)
from coin_sentiment.models import FetchEnvelope, RawDocument, SourceId, TrackedCrypto

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class HttpSourceAdapter(ABC):
    """Base async HTTP source adapter.

    An injected `httpx.AsyncClient` is reused for every request and left open;
    without one, a short-lived client is created per request.
    """

    # Largest page size the provider accepts
    MAX_LIMIT = 100
    # Environment variable holding the provider credential, if any
    CREDENTIAL_ENV_VAR: str | None = None

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        default_limit: int | None = None,
    ):
        self._client = client
        self.timeout = timeout
        self.default_limit = default_limit or self.MAX_LIMIT

    @property
    @abstractmethod
    def source_id(self) -> SourceId:
        """Return the SourceId this adapter produces."""

    @property
    def display_name(self) -> str:
        return self.source_id.name.capitalize()

    @property
    def credential(self) -> str | None:
        """Return the provider credential (None when the provider needs none)."""
        return None

    @abstractmethod
    def build_query(self, crypto: TrackedCrypto) -> str:
        """Build the provider search query for a tracked crypto."""

    @abstractmethod
    def build_request(self, query: str, limit: int) -> tuple[str, dict[str, Any], dict[str, str]]:
        """Return (url, params, headers) for a search request."""

    @abstractmethod
    def parse_response(
        self, payload: dict[str, Any], limit: int
    ) -> tuple[list[RawDocument], dict[str, Any]]:
        """Convert a decoded response into documents and provider metadata.

        Raises:
            MalformedResponseError: If the payload shape is unexpected
            PartialResponseError: If the provider reported errors
        """

    def resolve_limit(self, limit: int | None) -> int:
        """Validate a requested limit and cap it at MAX_LIMIT.

        Raises:
            ValueError: If limit < 1
        """
        if limit is None:
            limit = self.default_limit
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        return min(limit, self.MAX_LIMIT)

    def ensure_configured(self) -> None:
        """Raise MissingCredentialsError if the provider credential is unset."""
        if self.CREDENTIAL_ENV_VAR is not None and not self.credential:
            raise MissingCredentialsError(self.display_name, self.CREDENTIAL_ENV_VAR)

    async def fetch(self, crypto: TrackedCrypto, limit: int | None = None) -> FetchEnvelope:
        """Fetch documents about a tracked crypto.

        Args:
            crypto: Coin to search for (acronym must be non-empty)
            limit: Maximum documents (default: adapter default, capped at MAX_LIMIT)

        Returns:
            FetchEnvelope with documents in provider order
        """
        if not crypto.acronym or not crypto.acronym.strip():
            raise CoinSelectionError(
                f"Tracked crypto '{crypto.name}' has no acronym", selector=crypto.name
            )
        resolved = self.resolve_limit(limit)
        self.ensure_configured()

        query = self.build_query(crypto)
        logger.info(
            f"[{self.display_name}] Fetching (max {resolved}) documents about "
            f"'{crypto.name}' with query '{query}'"
        )
        return await self._search(query, resolved)

    async def fetch_public(self, query: str, limit: int | None = None) -> FetchEnvelope:
        """Fetch documents matching a free-text query.

        Args:
            query: Search keywords (must be non-empty)
            limit: Maximum documents (default: adapter default, capped at MAX_LIMIT)

        Returns:
            FetchEnvelope with documents in provider order
        """
        if not query or not query.strip():
            raise CoinSelectionError("Public search query must not be empty", selector=query)
        resolved = self.resolve_limit(limit)
        self.ensure_configured()

        logger.info(
            f"[{self.display_name}] Fetching (max {resolved}) documents for query '{query}'"
        )
        return await self._search(query.strip(), resolved)

    async def _search(self, query: str, limit: int) -> FetchEnvelope:
        url, params, headers = self.build_request(query, limit)
        payload = await self._get_json(url, params, headers)
        documents, provider_meta = self.parse_response(payload, limit)

        logger.info(f"[{self.display_name}] Fetched {len(documents)} documents")
        return FetchEnvelope(
            source=self.source_id,
            results=documents[:limit],
            meta={**provider_meta, "query": query, "limit": limit},
        )

    async def _send(
        self, client: httpx.AsyncClient, url: str, params: dict[str, Any], headers: dict[str, str]
    ) -> httpx.Response:
        response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
        return response

    async def _get_json(
        self, url: str, params: dict[str, Any], headers: dict[str, str]
    ) -> dict[str, Any]:
        try:
            if self._client is not None:
                response = await self._send(self._client, url, params, headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._send(client, url, params, headers)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise FetchError(
                f"[{self.display_name}] HTTP {status} from provider",
                source=self.source_id.value,
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(
                f"[{self.display_name}] Request failed: {e.__class__.__name__}: {e}",
                source=self.source_id.value,
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"[{self.display_name}] Response is not valid JSON",
                source=self.source_id.value,
            ) from e

        if not isinstance(payload, dict):
            raise MalformedResponseError(
                f"[{self.display_name}] Expected a JSON object, got {type(payload).__name__}",
                source=self.source_id.value,
            )
        return payload

    def malformed(self, detail: str) -> MalformedResponseError:
        """Build a MalformedResponseError tagged with this source."""
        return MalformedResponseError(
            f"[{self.display_name}] Malformed response: {detail}",
            source=self.source_id.value,
        )
