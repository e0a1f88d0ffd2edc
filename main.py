"""CLI entry point for the job aggregation pipeline."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from rolewatch.core.config import Settings
from rolewatch.core.http import HttpFetcher
from rolewatch.core.store import load_enrichment_cache
from rolewatch.pipeline.enrichment import CompensationEnricher
from rolewatch.pipeline.orchestrator import (
    PipelineResult,
    build_adapters,
    export_summary_json,
    run_pipeline,
    summarize,
)

DEFAULT_CONFIG = Path("config/settings.yaml")

logger = logging.getLogger("rolewatch")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch target-role job postings and write the jobs artifact",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG} if present, "
             "else built-in sources)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Override the artifact path from the config",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show configured sources and rules without fetching anything",
    )
    parser.add_argument(
        "--export",
        choices=["json"],
        help="Print the per-source summary in this format",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(config_path: str | None) -> Settings:
    """Explicit path must exist; otherwise the bundled file, else built-in defaults."""
    if config_path is not None:
        return Settings.from_yaml(config_path)
    if DEFAULT_CONFIG.exists():
        return Settings.from_yaml(DEFAULT_CONFIG)
    logger.info("No %s found, using built-in sources", DEFAULT_CONFIG)
    return Settings()


def dry_run(settings: Settings) -> None:
    """Print what would happen without touching the network."""
    print(f"[DRY RUN] {len(settings.sources)} sources configured")
    for source in settings.sources:
        flags = []
        if source.secondary:
            flags.append("secondary")
        if source.enrich:
            flags.append("enrich")
        suffix = f" ({', '.join(flags)})" if flags else ""
        print(f"[DRY RUN] '{source.key}' [{source.kind}] role class '{source.role_class}'{suffix}")
        if source.url:
            print(f"  URL: {source.url}")
        for search in source.searches:
            company = f" f_C={search.company_id}" if search.company_id else ""
            print(f"  Search: '{search.keywords}'{company} (max {source.max_pages} pages)")
    print(f"[DRY RUN] Retention window: {settings.retention.window_days} days")
    print(f"[DRY RUN] Would write {settings.output.artifact_path}")


async def run(settings: Settings) -> PipelineResult:
    """Run the full pipeline against the live upstreams."""
    cache = load_enrichment_cache(settings.output.enrichment_cache_path)
    async with HttpFetcher(settings.http) as fetcher:
        adapters = build_adapters(settings, fetcher)
        enricher = CompensationEnricher(settings.enrichment, fetcher, cache)
        return await run_pipeline(settings, adapters, enricher)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        # pydantic's ValidationError is a ValueError
        kind = "Invalid config" if isinstance(e, ValidationError) else "Error loading config"
        print(f"{kind}: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        settings.output.artifact_path = args.output

    if args.dry_run:
        dry_run(settings)
        return

    try:
        result = asyncio.run(run(settings))
    except (OSError, TypeError, ValueError) as e:
        logger.error("Fatal error: %s", e, exc_info=True)
        sys.exit(1)

    print(f"\n{summarize(result)}")
    if args.export == "json":
        print(f"\n{export_summary_json(result)}")


if __name__ == "__main__":
    main()
