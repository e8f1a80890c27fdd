"""Custom exceptions for coin_sentiment.

Errors are grouped by how the pipeline treats them:
- configuration and model errors are fatal and raised before any side effect
- source errors abort the current batch
- scoring, price and persistence errors are absorbed and recorded
"""


class CoinSentimentError(Exception):
    """Base exception for all coin_sentiment errors."""

    pass


# ============================================================================
# Configuration errors
# ============================================================================


class ConfigurationError(CoinSentimentError):
    """Raised when the run is misconfigured.

    Examples:
    - Invalid numeric environment variable
    - Unreadable tracked-crypto catalog
    """

    pass


class UnknownSourceError(ConfigurationError):
    """Raised when a source selector is not one of the supported sources."""

    def __init__(self, name: str):
        super().__init__(
            f"Unknown source '{name}'. Expected one of: twitter, reddit, bing, gnews"
        )
        self.name = name


class CoinSelectionError(ConfigurationError):
    """Raised when a coin cannot be selected.

    Examples:
    - Coin index outside the catalog
    - Empty public-search query
    - Catalog entry without an acronym
    """

    def __init__(self, message: str, selector: int | str | None = None):
        super().__init__(message)
        self.selector = selector


class MissingCredentialsError(ConfigurationError):
    """Raised when a source is used without its API credentials."""

    def __init__(self, source: str, env_var: str):
        super().__init__(f"[{source}] Missing credentials. Set {env_var}.")
        self.source = source
        self.env_var = env_var


# ============================================================================
# Model errors
# ============================================================================


class ModelLoadError(CoinSentimentError):
    """Raised when the sentiment model or its tokenizer fails to load."""

    def __init__(self, message: str, model_location: str | None = None):
        super().__init__(message)
        self.model_location = model_location


class ScoringError(CoinSentimentError):
    """Raised when a single text cannot be scored."""

    pass


# ============================================================================
# Source errors
# ============================================================================


class SourceError(CoinSentimentError):
    """Base class for failures reported by a source adapter."""

    def __init__(self, message: str, source: str):
        super().__init__(message)
        self.source = source


class FetchError(SourceError):
    """Raised when fetching from a source fails transiently.

    Examples:
    - Network error or timeout
    - HTTP 401/403 (auth) or 429 (quota)
    - HTTP 5xx from the provider
    """

    def __init__(self, message: str, source: str, status_code: int | None = None):
        super().__init__(message, source)
        self.status_code = status_code


class MalformedResponseError(SourceError):
    """Raised when a source response is not in the expected shape."""

    pass


class PartialResponseError(SourceError):
    """Raised when a source reports errors alongside data.

    The whole fetch is treated as failed so an incomplete sample never
    reaches aggregation.
    """

    def __init__(self, message: str, source: str, errors: list | None = None):
        super().__init__(message, source)
        self.errors = errors or []


# ============================================================================
# Aggregation errors
# ============================================================================


class EmptyAnalyzableSetError(CoinSentimentError):
    """Raised when no document could be scored, so no average exists."""

    def __init__(self, fetched: int, skipped: int):
        super().__init__(
            f"No analyzable documents: fetched={fetched}, skipped={skipped}"
        )
        self.fetched = fetched
        self.skipped = skipped


# ============================================================================
# Collaborator errors
# ============================================================================


class PriceLookupError(CoinSentimentError):
    """Raised when a price cannot be retrieved for a coin."""

    def __init__(self, message: str, acronym: str | None = None):
        super().__init__(message)
        self.acronym = acronym


class PersistenceError(CoinSentimentError):
    """Raised when a batch cannot be stored."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
