"""Pytest configuration and fixtures for all tests.

This module ensures tests run in isolation from production environment variables.
"""

import os

import pytest

from coin_sentiment.models import TrackedCrypto

# Environment variables that should not affect tests
PIPELINE_ENV_VARS = [
    "TWITTER_BEARER_TOKEN",
    "BING_SEARCH_API_KEY",
    "GNEWS_API_KEY",
    "REDDIT_USER_AGENT",
    "CRYPTOCOMPARE_API_KEY",
    "PRICE_CURRENCY",
    "SENTIMENT_MODEL",
    "SENTIMENT_USE_GPU",
    "SENTIMENT_WORKERS",
    "COIN_CATALOG_PATH",
    "BATCH_STORE_PATH",
    "FETCH_LIMIT",
    "HTTP_TIMEOUT_SECONDS",
]


@pytest.fixture(autouse=True)
def isolate_from_env():
    """Clear pipeline env vars before each test so no real credentials are used.

    This fixture runs automatically for every test (autouse=True).
    It saves original values, clears them for the test, then restores after.
    """
    original_values = {}
    for var in PIPELINE_ENV_VARS:
        if var in os.environ:
            original_values[var] = os.environ.pop(var)

    yield

    for var in PIPELINE_ENV_VARS:
        os.environ.pop(var, None)
    for var, value in original_values.items():
        os.environ[var] = value


@pytest.fixture
def bitcoin() -> TrackedCrypto:
    return TrackedCrypto(name="bitcoin", acronym="BTC")


@pytest.fixture
def catalog() -> tuple[TrackedCrypto, ...]:
    return (
        TrackedCrypto(name="bitcoin", acronym="BTC"),
        TrackedCrypto(name="ethereum", acronym="ETH"),
        TrackedCrypto(name="cardano", acronym="ADA"),
    )
