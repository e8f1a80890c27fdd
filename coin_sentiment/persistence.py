"""Persistence helpers for analyzed batches."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from coin_sentiment.exceptions import PersistenceError
from coin_sentiment.models import Batch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertResult:
    """Outcome of storing a batch."""

    inserted_count: int


def get_batch_path(base_path: Path, batch: Batch) -> Path:
    """Get path for a batch JSON file.

    Args:
        base_path: Base batch directory
        batch: Batch to be stored

    Returns:
        Path like <base>/<source>/<ACRONYM>/<timestamp>.json
    """
    # Sanitize timestamp for filesystem (replace colons)
    safe_timestamp = batch.summary.timestamp.replace(":", "-").replace("+", "_")
    # Query-derived acronyms may hold any character
    acronym = re.sub(r"[^A-Z0-9_-]", "_", batch.coin.acronym.upper()) or "_"
    return base_path / batch.source.value / acronym / f"{safe_timestamp}.json"


def save_batch(base_path: Path, batch: Batch) -> Path:
    """Write a batch to disk.

    Args:
        base_path: Base batch directory
        batch: Batch to save

    Returns:
        Path where the batch was saved
    """
    path = get_batch_path(base_path, batch)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(batch.to_dict(), f, indent=2)

    return path


def load_batch(path: Path) -> Batch:
    """Load a stored batch.

    Raises:
        PersistenceError: If the file is missing or not a valid batch
    """
    try:
        with open(path) as f:
            data = json.load(f)
        return Batch.from_dict(data)
    except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
        raise PersistenceError(f"Cannot load batch from {path}: {e}", path=str(path)) from e


class JsonBatchStore:
    """Batch store writing one JSON document per batch."""

    def __init__(self, base_path: Path | str):
        self.base_path = Path(base_path)

    async def insert_batch(self, batch: Batch) -> InsertResult:
        """Store a batch.

        File I/O runs in a worker thread so the event loop is not blocked.

        Returns:
            InsertResult with the number of analyzed documents stored

        Raises:
            PersistenceError: If the batch cannot be written
        """
        try:
            path = await asyncio.to_thread(save_batch, self.base_path, batch)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(
                f"Failed writing batch for {batch.coin.acronym}: {e}",
                path=str(get_batch_path(self.base_path, batch)),
            ) from e

        logger.info(f"[BatchStore] Saved {len(batch.results)} documents to {path}")
        return InsertResult(inserted_count=len(batch.results))
