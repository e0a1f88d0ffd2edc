"""LinkedIn guest search adapters: wire URL builder, parser and fetcher."""

import asyncio
import logging

from rolewatch.core.config import LinkedInSearch, RoleRule, SourceConfig
from rolewatch.core.http import TextFetcher
from rolewatch.core.schemas import JobRecord
from rolewatch.pipeline.matcher import RoleFilter
from rolewatch.platforms.base import SourceAdapter
from rolewatch.platforms.linkedin.parser import LinkedInParser
from rolewatch.platforms.linkedin.searcher import build_url, should_stop_pagination

logger = logging.getLogger(__name__)


class LinkedInSearchAdapter(SourceAdapter):
    """Runs the configured guest searches for one source.

    Pages of the same search are fetched one after another with a fixed
    ``PAGE_DELAY`` between them. Ids are deduplicated across searches; a
    failing search is logged and the other searches still contribute.
    """

    PAGE_DELAY: float = 0.5
    EASY_APPLY: bool = False
    JOB_TYPE: str = "Full time"

    def __init__(
        self,
        config: SourceConfig,
        fetcher: TextFetcher,
        role_rules: dict[str, RoleRule],
        *,
        page_delay: float | None = None,
    ) -> None:
        super().__init__(config, fetcher, role_rules)
        self._page_delay = self.PAGE_DELAY if page_delay is None else page_delay
        self._parser = LinkedInParser(
            job_type=self.JOB_TYPE,
            default_company=config.default_company,
            default_location=config.location,
            target_companies=config.target_companies,
        )

    async def _fetch(self) -> list[JobRecord]:
        accepted: set[str] = set()
        results: list[JobRecord] = []

        for search in self._config.searches:
            label = search.label or search.keywords
            try:
                await self._run_search(search, accepted, results)
            except Exception as e:
                logger.error("  [%s] Error: %s", label, e)
            logger.info("  [%s] cumulative: %d", label, len(results))

        return results

    async def _run_search(
        self,
        search: LinkedInSearch,
        accepted: set[str],
        results: list[JobRecord],
    ) -> None:
        role_filter = self._filter_for(search)
        page_seen: set[str] = set()

        for page_num in range(self._config.max_pages):
            if page_num > 0:
                await asyncio.sleep(self._page_delay)

            url = build_url(search, self._config.location, page_num, easy_apply=self.EASY_APPLY)
            logger.debug("Fetching page %d: %s", page_num, url)
            html = await self._fetcher.fetch_text(url)
            records = self._parser.parse_page(html)

            new_records = [r for r in records if r.id not in page_seen]
            page_seen.update(r.id for r in new_records)

            for record in new_records:
                if record.id in accepted:
                    continue
                if role_filter is not None and not role_filter.matches(record.title):
                    continue
                accepted.add(record.id)
                results.append(record)

            logger.debug(
                "Page %d: parsed %d cards, %d new", page_num, len(records), len(new_records),
            )
            if should_stop_pagination(len(records), len(new_records)):
                break

    def _filter_for(self, search: LinkedInSearch) -> RoleFilter | None:
        """Search-level override, else the source's own filter; None disables it."""
        if not search.apply_role_filter:
            return None
        if search.role_class:
            return RoleFilter(self._role_rules[search.role_class])
        return self._role_filter


class LinkedInEasyApplyAdapter(LinkedInSearchAdapter):
    """Easy Apply variant: cross-company searches, target companies flagged."""

    PAGE_DELAY = 0.3
    EASY_APPLY = True
    JOB_TYPE = "Easy Apply"
