"""Command-line entrypoint for the coin sentiment pipeline.

Can be run as:
1. CLI: python -m coin_sentiment.main --service twitter --coin-index 0
2. Console script: coin-sentiment --service reddit --query "bitcoin etf"
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from coin_sentiment.catalog import load_catalog, select_coin
from coin_sentiment.config import PipelineConfig
from coin_sentiment.exceptions import ConfigurationError, ModelLoadError
from coin_sentiment.finbert import get_scorer
from coin_sentiment.models import SourceId, TrackedCrypto
from coin_sentiment.persistence import JsonBatchStore
from coin_sentiment.pipeline import RunOutcome, SentimentPipeline
from coin_sentiment.prices import CryptoCompareClient
from coin_sentiment.sources.registry import build_adapters, parse_source_id

console = Console()

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Fetch crypto posts, score their sentiment and store a batch summary"
    )
    parser.add_argument(
        "-s",
        "--service",
        required=True,
        choices=[s.value for s in SourceId],
        type=str.lower,
        help="Source to fetch documents from",
    )
    selector = parser.add_mutually_exclusive_group()
    selector.add_argument(
        "-c",
        "--coin-index",
        type=int,
        default=0,
        help="Position of the coin in the tracked-crypto catalog (default: 0)",
    )
    selector.add_argument(
        "-q",
        "--query",
        type=str,
        default=None,
        help="Free-text search (public-search mode)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum documents to fetch (default: FETCH_LIMIT or 100)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Scoring worker threads (default: SENTIMENT_WORKERS or 1)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force CPU usage (disable GPU)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> PipelineConfig:
    """Build the run configuration from the environment and CLI overrides."""
    config = PipelineConfig.from_env()
    if args.limit is not None:
        if args.limit < 1:
            raise ConfigurationError(f"--limit must be >= 1, got {args.limit}")
        config.fetch_limit = args.limit
    if args.workers is not None:
        if args.workers < 1:
            raise ConfigurationError(f"--workers must be >= 1, got {args.workers}")
        config.scoring_workers = args.workers
    if args.cpu:
        config.use_gpu = False
    return config


async def run(
    args: argparse.Namespace,
    config: PipelineConfig,
    catalog: tuple[TrackedCrypto, ...],
) -> RunOutcome:
    """Validate the selection, load the model once, then run the pipeline.

    Raises:
        ConfigurationError: On bad selection or missing credentials
        ModelLoadError: If the sentiment model cannot be loaded
    """
    async with httpx.AsyncClient(timeout=config.http_timeout) as client:
        adapters = build_adapters(config, client)

        # Fail fast: nothing is loaded or fetched until the selection is valid
        source_id = parse_source_id(args.service)
        adapters[source_id].ensure_configured()
        if args.query is None:
            select_coin(catalog, args.coin_index)

        scorer = get_scorer(config.model_location, config.use_gpu)
        console.print(f"  Sentiment model: [cyan]{config.model_location}[/] on [green]{scorer.device}[/]")

        pipeline = SentimentPipeline(
            adapters=adapters,
            catalog=catalog,
            scorer=scorer,
            store=JsonBatchStore(config.batch_store_path),
            price_lookup=CryptoCompareClient(
                api_key=config.cryptocompare_api_key,
                currency=config.price_currency,
                client=client,
            ),
            fetch_limit=config.fetch_limit,
            workers=config.scoring_workers,
        )

        if args.query is not None:
            return await pipeline.run_for_query(source_id, args.query)
        return await pipeline.run_for_coin(source_id, args.coin_index)


def print_outcome(outcome: RunOutcome) -> None:
    """Print a run summary table."""
    table = Table(title=f"{outcome.coin.name} ({outcome.coin.acronym}) via {outcome.source.value}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    status_style = "green" if outcome.succeeded else "red"
    table.add_row("Status", f"[{status_style}]{outcome.status.value}[/]")

    if outcome.batch is not None:
        summary = outcome.batch.summary
        table.add_row("Documents fetched", str(outcome.batch.fetched_count))
        table.add_row("Average score", f"{summary.average_score:.4f}")
        table.add_row("Prediction", summary.prediction.value)
        price = "n/a" if summary.batch_time_price is None else f"{summary.batch_time_price:,.4f}"
        table.add_row("Batch-time price", price)
        table.add_row("Timestamp", summary.timestamp)

    table.add_row("Skipped documents", str(outcome.skipped_count))
    table.add_row("Inserted documents", str(outcome.inserted_count))
    if outcome.error:
        table.add_row("Error", f"[red]{outcome.error}[/]")

    console.print(table)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv(dotenv_path=args.env_file)

    try:
        config = resolve_config(args)
        catalog = load_catalog(config.catalog_path)
        outcome = asyncio.run(run(args, config, catalog))
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/] {e}")
        return EXIT_CONFIG_ERROR
    except ModelLoadError as e:
        console.print(f"[bold red]Model error:[/] {e}")
        return EXIT_CONFIG_ERROR

    print_outcome(outcome)
    return EXIT_OK if outcome.succeeded else EXIT_RUN_FAILED


if __name__ == "__main__":
    sys.exit(main())
