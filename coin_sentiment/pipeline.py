"""Main coin sentiment processing pipeline.

One run selects a source and a coin, then drives
fetch -> score -> aggregate -> persist strictly in sequence.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from coin_sentiment.aggregation import build_batch
from coin_sentiment.catalog import resolve_query, select_coin
from coin_sentiment.exceptions import EmptyAnalyzableSetError, SourceError, UnknownSourceError
from coin_sentiment.models import Batch, FetchEnvelope, SourceId, TrackedCrypto
from coin_sentiment.sources.registry import parse_source_id

if TYPE_CHECKING:
    from coin_sentiment.protocols import BatchStore, PriceLookup, SentimentScorer, SourceAdapter

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Outcome of a single pipeline run."""

    SUCCEEDED = "succeeded"
    FETCH_FAILED = "fetch_failed"  # transient, partial or malformed source response
    NO_DATA = "no_data"  # nothing analyzable to average
    PERSIST_FAILED = "persist_failed"  # batch assembled but not stored


@dataclass
class RunOutcome:
    """What happened during a run, for the operator."""

    status: RunStatus
    source: SourceId
    coin: TrackedCrypto
    batch: Batch | None = None
    inserted_count: int = 0
    skipped_count: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.SUCCEEDED


class SentimentPipeline:
    """Orchestrates a single fetch -> aggregate -> persist run.

    All collaborators are injected; the scorer must already be loaded so the
    model is initialized once per process, not once per batch.
    """

    def __init__(
        self,
        adapters: Mapping[SourceId, SourceAdapter],
        catalog: tuple[TrackedCrypto, ...],
        scorer: SentimentScorer,
        store: BatchStore,
        price_lookup: PriceLookup | None = None,
        fetch_limit: int | None = None,
        workers: int = 1,
    ):
        self.adapters = dict(adapters)
        self.catalog = catalog
        self.scorer = scorer
        self.store = store
        self.price_lookup = price_lookup
        self.fetch_limit = fetch_limit
        self.workers = workers

    def select_adapter(self, source: str | SourceId) -> tuple[SourceId, SourceAdapter]:
        """Resolve a source selector to its adapter.

        Raises:
            UnknownSourceError: If the source is unsupported or not registered
        """
        source_id = parse_source_id(source)
        adapter = self.adapters.get(source_id)
        if adapter is None:
            raise UnknownSourceError(str(source))
        return source_id, adapter

    def select_coin(self, coin_index: int) -> TrackedCrypto:
        """Resolve a coin index against the catalog.

        Raises:
            CoinSelectionError: If the index is out of range
        """
        return select_coin(self.catalog, coin_index)

    async def run_for_coin(self, source: str | SourceId, coin_index: int) -> RunOutcome:
        """Run the pipeline for a catalog coin (service mode).

        Selection is validated before any fetch is attempted.

        Args:
            source: Source selector (e.g. "twitter")
            coin_index: Position in the tracked-crypto catalog

        Returns:
            RunOutcome describing the run

        Raises:
            ConfigurationError: On unknown source, bad coin index or
                missing source credentials
        """
        source_id, adapter = self.select_adapter(source)
        coin = self.select_coin(coin_index)

        return await self._run(source_id, coin, lambda: adapter.fetch(coin, self.fetch_limit))

    async def run_for_query(self, source: str | SourceId, query: str | None = None) -> RunOutcome:
        """Run the pipeline for a free-text query (public-search mode).

        Args:
            source: Source selector (e.g. "reddit")
            query: Search keywords (empty = first catalog coin's name)

        Returns:
            RunOutcome describing the run

        Raises:
            ConfigurationError: On unknown source or missing source credentials
        """
        source_id, adapter = self.select_adapter(source)
        text, coin = resolve_query(self.catalog, query)

        return await self._run(
            source_id, coin, lambda: adapter.fetch_public(text, self.fetch_limit)
        )

    async def _run(
        self,
        source_id: SourceId,
        coin: TrackedCrypto,
        fetch: Callable[[], Awaitable[FetchEnvelope]],
    ) -> RunOutcome:
        logger.info(f"[Pipeline] Run started: source={source_id.value} coin={coin.acronym}")

        try:
            envelope = await fetch()
        except SourceError as e:
            logger.error(f"[Pipeline] Fetch failed for {coin.acronym}: {e}")
            return RunOutcome(
                status=RunStatus.FETCH_FAILED,
                source=source_id,
                coin=coin,
                error=str(e),
            )

        try:
            batch = await build_batch(
                envelope,
                coin,
                self.scorer,
                self.price_lookup,
                workers=self.workers,
            )
        except EmptyAnalyzableSetError as e:
            return RunOutcome(
                status=RunStatus.NO_DATA,
                source=source_id,
                coin=coin,
                skipped_count=e.skipped,
                error=str(e),
            )

        try:
            result = await self.store.insert_batch(batch)
        except Exception as e:
            logger.error(f"[Pipeline] Failed inserting batch for {coin.acronym}: {e}")
            return RunOutcome(
                status=RunStatus.PERSIST_FAILED,
                source=source_id,
                coin=coin,
                batch=batch,
                skipped_count=batch.skipped_count,
                error=str(e),
            )

        logger.info(f"[Pipeline] Inserted {result.inserted_count} documents")
        return RunOutcome(
            status=RunStatus.SUCCEEDED,
            source=source_id,
            coin=coin,
            batch=batch,
            inserted_count=result.inserted_count,
            skipped_count=batch.skipped_count,
        )
