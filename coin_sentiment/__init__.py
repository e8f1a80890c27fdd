"""Crypto sentiment batch pipeline.

Fetches short-text documents about a tracked cryptocurrency from one
source, scores each with a pretrained sentiment model, and stores a
batch summary classified as NEGATIVE / NEUTRAL / POSITIVE.
"""

# Aggregation
from coin_sentiment.aggregation import (
    NEGATIVE_THRESHOLD,
    POSITIVE_THRESHOLD,
    analyze_documents,
    build_batch,
    classify_score,
    compute_average_score,
)

# Catalog
from coin_sentiment.catalog import load_catalog, resolve_query, select_coin

# Config
from coin_sentiment.config import PipelineConfig

# Models
from coin_sentiment.models import (
    AnalyzedDocument,
    Batch,
    BatchState,
    BatchSummary,
    FetchEnvelope,
    Prediction,
    RawDocument,
    SourceId,
    TrackedCrypto,
)

# Persistence
from coin_sentiment.persistence import InsertResult, JsonBatchStore, load_batch

# Pipeline
from coin_sentiment.pipeline import RunOutcome, RunStatus, SentimentPipeline

# Protocols
from coin_sentiment.protocols import BatchStore, PriceLookup, SentimentScorer, SourceAdapter

__version__ = "0.1.0"

__all__ = [
    "NEGATIVE_THRESHOLD",
    "POSITIVE_THRESHOLD",
    "AnalyzedDocument",
    "Batch",
    "BatchState",
    "BatchStore",
    "BatchSummary",
    "FetchEnvelope",
    "InsertResult",
    "JsonBatchStore",
    "PipelineConfig",
    "Prediction",
    "PriceLookup",
    "RawDocument",
    "RunOutcome",
    "RunStatus",
    "SentimentPipeline",
    "SentimentScorer",
    "SourceAdapter",
    "SourceId",
    "TrackedCrypto",
    "analyze_documents",
    "build_batch",
    "classify_score",
    "compute_average_score",
    "load_batch",
    "load_catalog",
    "resolve_query",
    "select_coin",
]
