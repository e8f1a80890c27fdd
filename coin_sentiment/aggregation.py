"""Sentiment aggregation logic.

Turns a FetchEnvelope into a Batch:
1. score every document (failures are skipped and counted)
2. average the scores of the analyzable documents
3. classify the average with fixed thresholds
4. enrich with a batch-time price (None when the lookup fails)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from coin_sentiment.exceptions import EmptyAnalyzableSetError, ModelLoadError
from coin_sentiment.models import (
    AnalyzedDocument,
    Batch,
    BatchState,
    BatchSummary,
    FetchEnvelope,
    Prediction,
    TrackedCrypto,
)

if TYPE_CHECKING:
    from coin_sentiment.finbert import SentimentScore
    from coin_sentiment.protocols import PriceLookup, SentimentScorer

logger = logging.getLogger(__name__)

# Classification thresholds on the average score
NEGATIVE_THRESHOLD = 0.25  # score < 0.25 -> NEGATIVE
POSITIVE_THRESHOLD = 0.75  # score >= 0.75 -> POSITIVE


def classify_score(score: float) -> Prediction:
    """Classify an average sentiment score.

    Args:
        score: Average score in [0, 1]

    Returns:
        NEGATIVE below 0.25, POSITIVE from 0.75, NEUTRAL in between
    """
    if score < NEGATIVE_THRESHOLD:
        return Prediction.NEGATIVE
    if score < POSITIVE_THRESHOLD:
        return Prediction.NEUTRAL
    return Prediction.POSITIVE


def compute_average_score(
    documents: list[AnalyzedDocument],
    fetched: int | None = None,
    skipped: int = 0,
) -> float:
    """Compute the arithmetic mean of document scores.

    Args:
        documents: Analyzed documents
        fetched: Documents returned by the source (for the error report)
        skipped: Documents that failed scoring (for the error report)

    Returns:
        Mean of analysis.score

    Raises:
        EmptyAnalyzableSetError: If there are no analyzed documents
    """
    if not documents:
        raise EmptyAnalyzableSetError(
            fetched=fetched if fetched is not None else skipped,
            skipped=skipped,
        )
    return sum(d.analysis.score for d in documents) / len(documents)


def _score_one(scorer: SentimentScorer, text: str) -> SentimentScore | Exception:
    try:
        return scorer.score(text)
    except ModelLoadError:
        raise
    except Exception as e:
        return e


def _score_all(scorer: SentimentScorer, texts: list[str]) -> list[SentimentScore | Exception]:
    if not texts:
        return []
    try:
        outcomes = list(scorer.score_batch(texts))
    except ModelLoadError:
        raise
    except Exception as e:
        logger.warning(f"[Aggregator] Batch scoring failed, scoring one by one: {e}")
        return [_score_one(scorer, t) for t in texts]

    if len(outcomes) != len(texts):
        logger.warning(
            f"[Aggregator] Scorer returned {len(outcomes)} results for {len(texts)} texts, "
            f"scoring one by one"
        )
        return [_score_one(scorer, t) for t in texts]
    return outcomes


def analyze_documents(
    envelope: FetchEnvelope,
    coin: TrackedCrypto,
    scorer: SentimentScorer,
    workers: int = 1,
) -> tuple[list[AnalyzedDocument], int]:
    """Score every document in an envelope.

    Sequential scoring hands all texts to the scorer in one batch call.
    With workers > 1 documents are scored one by one on a thread pool.
    Results keep the envelope's order either way.

    Args:
        envelope: Fetched documents
        coin: Coin the batch is about
        scorer: Loaded sentiment scorer
        workers: Number of scoring threads

    Returns:
        Tuple of (analyzed documents, number of skipped documents)

    Raises:
        ModelLoadError: If the scorer cannot be initialized
    """
    texts = [doc.text for doc in envelope.results]

    if workers > 1 and len(texts) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda t: _score_one(scorer, t), texts))
    else:
        outcomes = _score_all(scorer, texts)

    analyzed: list[AnalyzedDocument] = []
    skipped = 0
    for doc, outcome in zip(envelope.results, outcomes, strict=True):
        if isinstance(outcome, Exception):
            skipped += 1
            logger.warning(
                f"[Aggregator] Skipping document from {envelope.source.value}: {outcome}"
            )
            continue
        analyzed.append(
            AnalyzedDocument(
                source=envelope.source,
                coin=coin,
                meta=envelope.meta,
                raw_source=doc.text,
                analysis=outcome,
                metadata=doc.metadata,
            )
        )

    return analyzed, skipped


async def lookup_price(price_lookup: PriceLookup | None, coin: TrackedCrypto) -> float | None:
    """Fetch the batch-time price, degrading to None on any failure."""
    if price_lookup is None:
        return None
    try:
        price = await price_lookup.get_price(coin.acronym)
        return float(price) if price is not None else None
    except Exception as e:
        logger.warning(f"[Aggregator] Price lookup failed for {coin.acronym}: {e}")
        return None


async def build_batch(
    envelope: FetchEnvelope,
    coin: TrackedCrypto,
    scorer: SentimentScorer,
    price_lookup: PriceLookup | None,
    now: datetime | None = None,
    workers: int = 1,
) -> Batch:
    """Assemble a Batch from fetched documents.

    Args:
        envelope: Fetched documents
        coin: Coin the batch is about
        scorer: Loaded sentiment scorer
        price_lookup: Price service (None = no price enrichment)
        now: Summary timestamp (defaults to the current UTC time)
        workers: Number of scoring threads

    Returns:
        Batch in the VIRGIN state

    Raises:
        EmptyAnalyzableSetError: If no document could be scored
        ModelLoadError: If the scorer cannot be initialized
    """
    analyzed, skipped = analyze_documents(envelope, coin, scorer, workers=workers)
    fetched = len(envelope.results)

    if not analyzed:
        logger.error(
            f"[Aggregator] No analyzable documents for {coin.acronym} "
            f"from {envelope.source.value} (fetched={fetched}, skipped={skipped})"
        )
    average_score = compute_average_score(analyzed, fetched=fetched, skipped=skipped)
    prediction = classify_score(average_score)

    # Price is fetched once per batch, never per document
    batch_time_price = await lookup_price(price_lookup, coin)

    timestamp = (now or datetime.now(UTC)).isoformat()
    summary = BatchSummary(
        source=envelope.source,
        coin=coin,
        average_score=average_score,
        prediction=prediction,
        batch_time_price=batch_time_price,
        timestamp=timestamp,
    )

    logger.info(
        f"[Aggregator] {coin.acronym}/{envelope.source.value}: "
        f"avg={average_score:.4f} -> {prediction.value} "
        f"({len(analyzed)} scored, {skipped} skipped, price={batch_time_price})"
    )

    return Batch(
        summary=summary,
        source=envelope.source,
        coin=coin,
        meta=envelope.meta,
        results=analyzed,
        fetched_count=fetched,
        skipped_count=skipped,
        state=BatchState.VIRGIN,
    )
