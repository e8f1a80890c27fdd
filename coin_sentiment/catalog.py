"""Tracked-crypto catalog.

The catalog is an ordered JSON list of {"name", "acronym"} records. A run
selects exactly one entry, either by position (service mode) or by matching
a free-text query (public-search mode).
"""

import json
import logging
from importlib import resources
from pathlib import Path

from coin_sentiment.exceptions import CoinSelectionError, ConfigurationError
from coin_sentiment.models import TrackedCrypto

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_RESOURCE = "coins.json"


def _read_catalog_text(path: Path | None) -> str:
    if path is None:
        return (
            resources.files("coin_sentiment")
            .joinpath("data", DEFAULT_CATALOG_RESOURCE)
            .read_text(encoding="utf-8")
        )
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read coin catalog at {path}: {e}") from e


def load_catalog(path: Path | None = None) -> tuple[TrackedCrypto, ...]:
    """Load the ordered tracked-crypto catalog.

    Args:
        path: JSON catalog file (None = catalog shipped with the package)

    Returns:
        Tuple of TrackedCrypto in catalog order

    Raises:
        ConfigurationError: If the file is unreadable, not a JSON list, or
            contains an entry without a name or acronym
    """
    text = _read_catalog_text(path)
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Coin catalog is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise ConfigurationError("Coin catalog must be a JSON list")

    coins = []
    for position, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Coin catalog entry #{position} is not an object")
        name = str(entry.get("name") or "").strip()
        acronym = str(entry.get("acronym") or "").strip()
        if not name or not acronym:
            raise ConfigurationError(
                f"Coin catalog entry #{position} needs a name and an acronym"
            )
        coins.append(TrackedCrypto(name=name, acronym=acronym))

    logger.debug(f"[Catalog] Loaded {len(coins)} tracked cryptos")
    return tuple(coins)


def select_coin(catalog: tuple[TrackedCrypto, ...], index: int) -> TrackedCrypto:
    """Select a tracked crypto by its position in the catalog.

    Raises:
        CoinSelectionError: If index is outside [0, len(catalog))
    """
    if index < 0 or index >= len(catalog):
        raise CoinSelectionError(
            f"Coin index {index} out of range (0-{len(catalog) - 1})",
            selector=index,
        )
    return catalog[index]


def resolve_query(catalog: tuple[TrackedCrypto, ...], query: str | None) -> tuple[str, TrackedCrypto]:
    """Resolve a public-search query to a (query, coin) pair.

    An empty query falls back to the first catalog entry's name. A query
    matching a catalog entry by name or acronym (case-insensitive) uses that
    entry; anything else becomes an ad-hoc coin named after the query.

    Raises:
        CoinSelectionError: If the query is empty and the catalog is empty
    """
    text = (query or "").strip()
    if not text:
        if not catalog:
            raise CoinSelectionError("Empty query and empty coin catalog", selector=query)
        return catalog[0].name, catalog[0]

    lowered = text.lower()
    for coin in catalog:
        if coin.name.lower() == lowered or coin.acronym.lower() == lowered:
            return text, coin

    return text, TrackedCrypto(name=text, acronym=text.upper())
