"""Data models for the coin sentiment pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from coin_sentiment.finbert import SentimentScore


class SourceId(str, Enum):
    """External providers a batch can come from."""

    TWITTER = "twitter"
    REDDIT = "reddit"
    BING = "bing"
    GNEWS = "gnews"


class Prediction(str, Enum):
    """Batch-level sentiment classification."""

    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"
    POSITIVE = "POSITIVE"


class BatchState(str, Enum):
    """Lifecycle state of a stored batch.

    Only the initial state is assigned here; later states belong to
    downstream consumers.
    """

    VIRGIN = "VIRGIN"


@dataclass(frozen=True)
class TrackedCrypto:
    """A catalog entry identifying one cryptocurrency."""

    name: str
    acronym: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"name": self.name, "acronym": self.acronym}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrackedCrypto:
        """Create from dictionary."""
        return cls(name=data["name"], acronym=data["acronym"])


@dataclass(frozen=True)
class RawDocument:
    """A text item returned by a source.

    `metadata` carries provider-specific fields such as timestamps and
    author ids through the pipeline untouched.
    """

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"text": self.text, "metadata": self.metadata}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawDocument:
        """Create from dictionary."""
        return cls(text=data.get("text", ""), metadata=data.get("metadata", {}))


@dataclass(frozen=True)
class FetchEnvelope:
    """Normalized result of a source fetch.

    `results` keeps the order returned by the source and may be empty.
    """

    source: SourceId
    results: list[RawDocument]
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source.value,
            "results": [r.to_dict() for r in self.results],
            "meta": self.meta,
        }


@dataclass(frozen=True)
class AnalyzedDocument:
    """A scored document together with the batch context it came from."""

    source: SourceId
    coin: TrackedCrypto
    meta: dict[str, Any]
    raw_source: str
    analysis: SentimentScore
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source.value,
            "coin": self.coin.to_dict(),
            "meta": self.meta,
            "raw_source": self.raw_source,
            "analysis": self.analysis.to_dict(),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalyzedDocument:
        """Create from dictionary."""
        from coin_sentiment.finbert import SentimentScore

        return cls(
            source=SourceId(data["source"]),
            coin=TrackedCrypto.from_dict(data["coin"]),
            meta=data.get("meta", {}),
            raw_source=data["raw_source"],
            analysis=SentimentScore.from_dict(data["analysis"]),
            metadata=data.get("metadata", {}),
        )


@dataclass(frozen=True)
class BatchSummary:
    """Batch-level verdict derived from the analyzed documents."""

    source: SourceId
    coin: TrackedCrypto
    average_score: float
    prediction: Prediction
    batch_time_price: float | None  # None when the price lookup failed
    timestamp: str  # ISO-8601, time the summary was assembled

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source.value,
            "coin": self.coin.to_dict(),
            "average_score": self.average_score,
            "prediction": self.prediction.value,
            "batch_time_price": self.batch_time_price,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BatchSummary:
        """Create from dictionary."""
        return cls(
            source=SourceId(data["source"]),
            coin=TrackedCrypto.from_dict(data["coin"]),
            average_score=data["average_score"],
            prediction=Prediction(data["prediction"]),
            batch_time_price=data.get("batch_time_price"),
            timestamp=data["timestamp"],
        )


@dataclass(frozen=True)
class Batch:
    """The unit handed to persistence."""

    summary: BatchSummary
    source: SourceId
    coin: TrackedCrypto
    meta: dict[str, Any]
    results: list[AnalyzedDocument]
    fetched_count: int
    skipped_count: int
    state: BatchState = BatchState.VIRGIN

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "summary": self.summary.to_dict(),
            "source": self.source.value,
            "coin": self.coin.to_dict(),
            "meta": self.meta,
            "results": [r.to_dict() for r in self.results],
            "fetched_count": self.fetched_count,
            "skipped_count": self.skipped_count,
            "state": self.state.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Batch:
        """Create from dictionary."""
        return cls(
            summary=BatchSummary.from_dict(data["summary"]),
            source=SourceId(data["source"]),
            coin=TrackedCrypto.from_dict(data["coin"]),
            meta=data.get("meta", {}),
            results=[AnalyzedDocument.from_dict(r) for r in data["results"]],
            fetched_count=data["fetched_count"],
            skipped_count=data["skipped_count"],
            state=BatchState(data["state"]),
        )
