"""Configuration for the coin sentiment pipeline.

The config is read from the environment once, at process start, and passed
into each component. Components never consult the environment themselves.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from coin_sentiment.exceptions import ConfigurationError

# Environment variable names
ENV_TWITTER_BEARER_TOKEN = "TWITTER_BEARER_TOKEN"
ENV_BING_SEARCH_API_KEY = "BING_SEARCH_API_KEY"
ENV_GNEWS_API_KEY = "GNEWS_API_KEY"
ENV_REDDIT_USER_AGENT = "REDDIT_USER_AGENT"
ENV_CRYPTOCOMPARE_API_KEY = "CRYPTOCOMPARE_API_KEY"
ENV_PRICE_CURRENCY = "PRICE_CURRENCY"
ENV_SENTIMENT_MODEL = "SENTIMENT_MODEL"
ENV_SENTIMENT_USE_GPU = "SENTIMENT_USE_GPU"
ENV_SENTIMENT_WORKERS = "SENTIMENT_WORKERS"
ENV_COIN_CATALOG_PATH = "COIN_CATALOG_PATH"
ENV_BATCH_STORE_PATH = "BATCH_STORE_PATH"
ENV_FETCH_LIMIT = "FETCH_LIMIT"
ENV_HTTP_TIMEOUT_SECONDS = "HTTP_TIMEOUT_SECONDS"

# Defaults
DEFAULT_SENTIMENT_MODEL = "ProsusAI/finbert"
DEFAULT_REDDIT_USER_AGENT = "coin-sentiment/0.1 (sentiment batch collector)"
DEFAULT_PRICE_CURRENCY = "USD"
DEFAULT_FETCH_LIMIT = 100
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_BATCH_STORE_PATH = Path("data/batches")


def _parse_bool(name: str, raw: str | None) -> bool | None:
    """Parse an optional boolean flag; unset or empty means auto."""
    if raw is None or raw.strip() == "":
        return None
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got '{raw}'")


def _parse_positive_int(name: str, raw: str | None, default: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from e
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {value}")
    return value


def _parse_positive_float(name: str, raw: str | None, default: float) -> float:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be > 0, got {value}")
    return value


@dataclass
class PipelineConfig:
    """Configuration for a single pipeline run.

    Attributes:
        twitter_bearer_token: Twitter API v2 bearer token
        bing_api_key: Bing News Search subscription key
        gnews_api_key: GNews API token
        reddit_user_agent: User-Agent sent to Reddit's public search
        cryptocompare_api_key: Optional CryptoCompare key (anonymous if None)
        price_currency: Quote currency for the batch-time price
        model_location: Hub id or local directory of the sentiment model
        use_gpu: Force GPU usage (None = auto-detect)
        scoring_workers: Worker threads for scoring (1 = sequential)
        catalog_path: Tracked-crypto catalog JSON (None = packaged catalog)
        batch_store_path: Base directory for stored batches
        fetch_limit: Default number of documents per fetch
        http_timeout: Timeout for outbound HTTP requests in seconds
    """

    # Source credentials
    twitter_bearer_token: str | None = None
    bing_api_key: str | None = None
    gnews_api_key: str | None = None
    reddit_user_agent: str = DEFAULT_REDDIT_USER_AGENT

    # Price lookup
    cryptocompare_api_key: str | None = None
    price_currency: str = DEFAULT_PRICE_CURRENCY

    # Sentiment model
    model_location: str = DEFAULT_SENTIMENT_MODEL
    use_gpu: bool | None = None
    scoring_workers: int = 1

    # Storage and catalog
    catalog_path: Path | None = None
    batch_store_path: Path = field(default_factory=lambda: DEFAULT_BATCH_STORE_PATH)

    # Fetching
    fetch_limit: int = DEFAULT_FETCH_LIMIT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PipelineConfig":
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            PipelineConfig populated from the environment

        Raises:
            ConfigurationError: If a numeric or boolean variable is invalid
        """
        env = os.environ if environ is None else environ

        catalog = env.get(ENV_COIN_CATALOG_PATH)
        store = env.get(ENV_BATCH_STORE_PATH)

        return cls(
            twitter_bearer_token=env.get(ENV_TWITTER_BEARER_TOKEN) or None,
            bing_api_key=env.get(ENV_BING_SEARCH_API_KEY) or None,
            gnews_api_key=env.get(ENV_GNEWS_API_KEY) or None,
            reddit_user_agent=env.get(ENV_REDDIT_USER_AGENT) or DEFAULT_REDDIT_USER_AGENT,
            cryptocompare_api_key=env.get(ENV_CRYPTOCOMPARE_API_KEY) or None,
            price_currency=(env.get(ENV_PRICE_CURRENCY) or DEFAULT_PRICE_CURRENCY).upper(),
            model_location=env.get(ENV_SENTIMENT_MODEL) or DEFAULT_SENTIMENT_MODEL,
            use_gpu=_parse_bool(ENV_SENTIMENT_USE_GPU, env.get(ENV_SENTIMENT_USE_GPU)),
            scoring_workers=_parse_positive_int(
                ENV_SENTIMENT_WORKERS, env.get(ENV_SENTIMENT_WORKERS), 1
            ),
            catalog_path=Path(catalog) if catalog else None,
            batch_store_path=Path(store) if store else DEFAULT_BATCH_STORE_PATH,
            fetch_limit=_parse_positive_int(
                ENV_FETCH_LIMIT, env.get(ENV_FETCH_LIMIT), DEFAULT_FETCH_LIMIT
            ),
            http_timeout=_parse_positive_float(
                ENV_HTTP_TIMEOUT_SECONDS,
                env.get(ENV_HTTP_TIMEOUT_SECONDS),
                DEFAULT_HTTP_TIMEOUT_SECONDS,
            ),
        )
