"""Protocol definitions for dependency injection."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from coin_sentiment.finbert import SentimentScore
    from coin_sentiment.models import Batch, FetchEnvelope, SourceId, TrackedCrypto
    from coin_sentiment.persistence import InsertResult


class SourceAdapter(Protocol):
    """Protocol for fetching raw documents from an external source.

    Implementations return a FetchEnvelope or raise a SourceError subclass;
    they never return None.
    """

    @property
    def source_id(self) -> "SourceId": ...

    async def fetch(self, crypto: "TrackedCrypto", limit: int | None = None) -> "FetchEnvelope":
        """Fetch documents mentioning a tracked crypto."""
        ...

    async def fetch_public(self, query: str, limit: int | None = None) -> "FetchEnvelope":
        """Fetch documents matching a free-text query."""
        ...


class SentimentScorer(Protocol):
    """Protocol for scoring text sentiment."""

    def score(self, text: str) -> "SentimentScore":
        """Score the sentiment of a text."""
        ...

    def score_batch(self, texts: list[str]) -> list["SentimentScore | Exception"]:
        """Score many texts at once; one score or error per text, in order."""
        ...


class PriceLookup(Protocol):
    """Protocol for looking up the current price of a coin."""

    async def get_price(self, acronym: str) -> float | None:
        """Return the current price of a coin, keyed by its acronym."""
        ...


class BatchStore(Protocol):
    """Protocol for persisting assembled batches."""

    async def insert_batch(self, batch: "Batch") -> "InsertResult":
        """Store a batch and report how many documents were stored."""
        ...
