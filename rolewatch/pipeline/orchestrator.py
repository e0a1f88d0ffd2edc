"""Orchestrator: wires adapters, filters, enrichment, merge and artifact write.

Data flow:
  1. Load the previous artifact (missing/unreadable = start fresh)
  2. Run every adapter concurrently; a failure counts as an empty fetch
  3. Primary sources: enrich (if enabled) → merge with previous
  4. Secondary sources: drop titles covered by primary sources → enrich → merge
  5. Stamp fetchedAt, write the artifact atomically, save the enrichment cache
"""

import asyncio
import json
import logging
from datetime import datetime, timezone

from rolewatch.core.config import Settings, SourceConfig
from rolewatch.core.http import TextFetcher
from rolewatch.core.schemas import Artifact, JobRecord, SourceResult
from rolewatch.core.store import load_artifact, save_enrichment_cache, write_artifact
from rolewatch.pipeline.enrichment import CompensationEnricher
from rolewatch.pipeline.matcher import CrossSourceDedupFilter
from rolewatch.pipeline.merge import count_retained, merge_records
from rolewatch.platforms.base import SourceAdapter
from rolewatch.platforms.feed import FeedAdapter
from rolewatch.platforms.jobs_api import JobsApiAdapter
from rolewatch.platforms.linkedin.adapter import LinkedInEasyApplyAdapter, LinkedInSearchAdapter

logger = logging.getLogger(__name__)

ADAPTER_TYPES: dict[str, type[SourceAdapter]] = {
    "feed": FeedAdapter,
    "jobs_api": JobsApiAdapter,
    "linkedin": LinkedInSearchAdapter,
    "linkedin_easy_apply": LinkedInEasyApplyAdapter,
}


class SourceSummary:
    """Counts for one source in one run."""

    def __init__(
        self,
        key: str,
        name: str,
        fetched: int,
        kept: int,
        retained: int,
        failed: bool = False,
    ) -> None:
        self.key = key
        self.name = name
        self.fetched = fetched
        self.kept = kept
        self.retained = retained
        self.failed = failed


class PipelineResult:
    """What a run produced: the written artifact and per-source counts."""

    def __init__(self, artifact: Artifact, summaries: list[SourceSummary]) -> None:
        self.artifact = artifact
        self.summaries = summaries

    @property
    def total_jobs(self) -> int:
        return sum(len(r.jobs) for r in self.artifact.sources.values())


def build_adapters(settings: Settings, fetcher: TextFetcher) -> list[SourceAdapter]:
    """Instantiate one adapter per configured source."""
    adapters: list[SourceAdapter] = []
    for source in settings.sources:
        adapter_type = ADAPTER_TYPES[source.kind]
        adapters.append(adapter_type(source, fetcher, settings.role_rules))
    return adapters


async def fetch_all(adapters: list[SourceAdapter]) -> dict[str, list[JobRecord] | None]:
    """Run every adapter concurrently and collect each outcome.

    Returns source key -> records, or None for an adapter that raised or
    reported a failed fetch.
    One adapter's failure never cancels its siblings.
    """
    outcomes = await asyncio.gather(*(a.fetch() for a in adapters), return_exceptions=True)
    fetched: dict[str, list[JobRecord] | None] = {}
    for adapter, outcome in zip(adapters, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("[%s] Adapter raised: %s", adapter.source_key, outcome)
            fetched[adapter.source_key] = None
        elif adapter.failed:
            fetched[adapter.source_key] = None
        else:
            fetched[adapter.source_key] = outcome
    return fetched


async def run_pipeline(
    settings: Settings,
    adapters: list[SourceAdapter],
    enricher: CompensationEnricher | None = None,
    *,
    now: datetime | None = None,
) -> PipelineResult:
    """Execute one full aggregation run and persist its artifact.

    Raises:
        OSError: if the artifact (or enrichment cache) cannot be written.
    """
    logger.info("Starting job fetch... %s", datetime.now(timezone.utc).isoformat())
    previous = load_artifact(settings.output.artifact_path)
    fetched = await fetch_all(adapters)

    results: dict[str, SourceResult] = {}
    summaries: dict[str, SourceSummary] = {}

    primary = [s for s in settings.sources if not s.secondary]
    secondary = [s for s in settings.sources if s.secondary]

    for source in primary:
        results[source.key], summaries[source.key] = await _process_source(
            source, fetched, previous, settings, enricher, None, now,
        )

    covered = CrossSourceDedupFilter.from_records(
        [job for s in primary for job in results[s.key].jobs],
    )
    for source in secondary:
        results[source.key], summaries[source.key] = await _process_source(
            source, fetched, previous, settings, enricher, covered, now,
        )

    artifact = Artifact(
        fetched_at=_iso(now or datetime.now(timezone.utc)),
        sources={s.key: results[s.key] for s in settings.sources},
    )
    write_artifact(artifact, settings.output.artifact_path)
    if enricher is not None:
        save_enrichment_cache(enricher.cache, settings.output.enrichment_cache_path)

    ordered = [summaries[s.key] for s in settings.sources]
    result = PipelineResult(artifact, ordered)
    logger.info(
        "Done. %d total matching roles written to %s",
        result.total_jobs, settings.output.artifact_path,
    )
    return result


def summarize(result: PipelineResult) -> str:
    """Human-readable per-source summary."""
    lines = [f"{result.total_jobs} total matching roles (fetched at {result.artifact.fetched_at})"]
    for s in result.summaries:
        status = " [FAILED]" if s.failed else ""
        lines.append(
            f"  {s.name}: {s.kept} jobs ({s.fetched} fetched, {s.retained} retained){status}",
        )
    return "\n".join(lines)


def export_summary_json(result: PipelineResult) -> str:
    """Per-source counts as a JSON string."""
    data = [
        {
            "key": s.key,
            "name": s.name,
            "fetched": s.fetched,
            "kept": s.kept,
            "retained": s.retained,
            "failed": s.failed,
        }
        for s in result.summaries
    ]
    return json.dumps(data, indent=2)


async def _process_source(
    source: SourceConfig,
    fetched: dict[str, list[JobRecord] | None],
    previous: Artifact | None,
    settings: Settings,
    enricher: CompensationEnricher | None,
    dedup: CrossSourceDedupFilter | None,
    now: datetime | None,
) -> tuple[SourceResult, SourceSummary]:
    outcome = fetched.get(source.key)
    fresh = list(outcome or [])
    prior = previous.jobs_for(source.key) if previous is not None else []

    if dedup is not None:
        fresh = dedup(fresh)
        prior = dedup(prior)

    if source.enrich and enricher is not None and fresh:
        fresh = await enricher.enrich(fresh)

    merged = merge_records(prior, fresh, settings.retention.window_days, now=now)
    retained = count_retained(merged, fresh)
    logger.info(
        "[%s] %d fresh + %d retained = %d jobs",
        source.name, len(fresh), retained, len(merged),
    )

    result = SourceResult(
        name=source.name,
        target_role=source.target_role,
        canonical_url=source.canonical_url,
        jobs=merged,
    )
    summary = SourceSummary(
        key=source.key,
        name=source.name,
        fetched=len(outcome or []),
        kept=len(merged),
        retained=retained,
        failed=outcome is None,
    )
    return result, summary


def _iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
