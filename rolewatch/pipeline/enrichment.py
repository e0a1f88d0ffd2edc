"""Compensation enrichment for job records.

Resolution order per company (``department`` field):
  1. curated table: exact normalized name, then substring match
  2. disk cache: keyed by company slug, honoured until TTL expiry
  3. fallback lookup: HTTP scrape of a compensation site, batched

Companies with no data pass through untouched (fail open). Companies whose
top of band is below the configured threshold are dropped.
"""

import asyncio
import logging
import re
import time
from collections.abc import Callable

from bs4 import BeautifulSoup

from rolewatch.core.config import CompRange, EnrichmentConfig
from rolewatch.core.http import TextFetcher
from rolewatch.core.schemas import EnrichmentCacheEntry, JobRecord

logger = logging.getLogger(__name__)

CURATED_SOURCE = "curated"
FALLBACK_SOURCE = "fallback-lookup"

_DAY_MS = 86_400_000
_CORPORATE_SUFFIXES = frozenset({
    "inc", "llc", "ltd", "limited", "pvt", "private", "corp", "corporation", "india",
})

# ₹ amounts with an optional unit, e.g. "₹45L", "₹1.2 Cr", "₹45,00,000".
_RUPEE_AMOUNT = re.compile(
    r"₹\s*(\d[\d,]*(?:\.\d+)?)\s*(crore|cr|lakhs?|lpa|l|k|m)?\b",
    re.IGNORECASE,
)
# Multiplier from each unit to lakhs per annum.
_TO_LPA: dict[str, float] = {
    "crore": 100.0,
    "cr": 100.0,
    "lakh": 1.0,
    "lakhs": 1.0,
    "lpa": 1.0,
    "l": 1.0,
    "k": 0.01,
    "m": 10.0,
    "": 0.00001,
}
_PLAUSIBLE_LPA = (1.0, 2000.0)


def normalize_company(name: str) -> str:
    return " ".join(name.lower().split())


def _contains_words(text: str, phrase: str) -> bool:
    """True when ``phrase`` occurs in ``text`` bounded by non-word characters."""
    return re.search(rf"(?<!\w){re.escape(phrase)}(?!\w)", text) is not None


def company_slug(name: str) -> str:
    """URL/cache slug: lower-case alphanumeric tokens, trailing corporate suffixes dropped."""
    tokens = re.findall(r"[a-z0-9]+", name.lower())
    while tokens and tokens[-1] in _CORPORATE_SUFFIXES:
        tokens.pop()
    return "-".join(tokens)


def format_salary_range(entry: EnrichmentCacheEntry) -> str:
    if entry.max_value is None:
        return ""
    if entry.min_value is None or entry.min_value == entry.max_value:
        return f"₹{entry.max_value:g}L"
    return f"₹{entry.min_value:g}-{entry.max_value:g}L"


def parse_compensation_page(html: str) -> CompRange | None:
    """Extract the band of rupee figures on a page, in lakhs per annum.

    Returns None when the page has no plausible figures.
    """
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    values: list[float] = []
    for number, unit in _RUPEE_AMOUNT.findall(text):
        try:
            amount = float(number.replace(",", ""))
        except ValueError:
            continue
        lpa = round(amount * _TO_LPA[(unit or "").lower()], 1)
        if _PLAUSIBLE_LPA[0] <= lpa <= _PLAUSIBLE_LPA[1]:
            values.append(lpa)
    if not values:
        return None
    low, high = min(values), max(values)
    return CompRange(min_value=low if low < high else None, max_value=high)


class CompensationEnricher:
    """Annotates or drops records by company compensation.

    The cache dict is owned by the caller and updated in place after each
    lookup batch settles; persist it with ``store.save_enrichment_cache``.
    """

    def __init__(
        self,
        config: EnrichmentConfig,
        fetcher: TextFetcher,
        cache: dict[str, EnrichmentCacheEntry] | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._fetcher = fetcher
        self._cache = cache if cache is not None else {}
        self._clock = clock
        self._curated = {normalize_company(k): v for k, v in config.curated.items()}

    @property
    def cache(self) -> dict[str, EnrichmentCacheEntry]:
        return self._cache

    def lookup_curated(self, company: str) -> CompRange | None:
        """Exact normalized match first, then a whole-word match in either direction."""
        name = normalize_company(company)
        if not name:
            return None
        if name in self._curated:
            return self._curated[name]
        for known, band in self._curated.items():
            if _contains_words(name, known) or (len(name) >= 3 and _contains_words(known, name)):
                return band
        return None

    async def resolve(self, companies: list[str]) -> dict[str, EnrichmentCacheEntry | None]:
        """Resolve each distinct company to an entry, or None when nothing is known."""
        now_ms = self._now_ms()
        resolved: dict[str, EnrichmentCacheEntry | None] = {}
        to_lookup: dict[str, list[str]] = {}

        for company in dict.fromkeys(companies):
            band = self.lookup_curated(company)
            if band is not None:
                resolved[company] = EnrichmentCacheEntry(
                    min_value=band.min_value,
                    max_value=band.max_value,
                    source=CURATED_SOURCE,
                    ts=now_ms,
                )
                continue
            slug = company_slug(company)
            cached = self._cache.get(slug) if slug else None
            if cached is not None and self._is_fresh(cached, now_ms):
                resolved[company] = cached
            elif slug and self._config.lookup_url_template:
                to_lookup.setdefault(slug, []).append(company)
            else:
                resolved[company] = None

        if to_lookup:
            fetched = await self._lookup_all(list(to_lookup))
            for slug, names in to_lookup.items():
                entry = fetched.get(slug)
                for name in names:
                    resolved[name] = entry
        return resolved

    async def enrich(self, records: list[JobRecord]) -> list[JobRecord]:
        """Annotate records at/above threshold, drop those below, pass the rest through."""
        resolved = await self.resolve([r.department for r in records if r.department.strip()])
        threshold = self._config.min_compensation_lpa

        result: list[JobRecord] = []
        dropped = 0
        for record in records:
            entry = resolved.get(record.department)
            if entry is None or entry.max_value is None:
                result.append(record)
                continue
            if entry.max_value < threshold:
                dropped += 1
                continue
            result.append(record.model_copy(update={
                "salary_range": format_salary_range(entry),
                "salary_source": entry.source,
            }))

        if dropped:
            logger.info(
                "Enrichment: dropped %d records below %g LPA", dropped, threshold,
            )
        return result

    # --- Private helpers ---

    async def _lookup_all(self, slugs: list[str]) -> dict[str, EnrichmentCacheEntry | None]:
        """Fallback lookups in batches of ``concurrency`` with a pause between batches."""
        size = self._config.concurrency
        results: dict[str, EnrichmentCacheEntry | None] = {}
        logger.info("Enrichment: %d fallback lookups", len(slugs))

        for start in range(0, len(slugs), size):
            if start > 0:
                await asyncio.sleep(self._config.batch_delay_s)
            batch = slugs[start:start + size]
            outcomes = await asyncio.gather(*(self._lookup(slug) for slug in batch))
            for slug, entry in zip(batch, outcomes):
                results[slug] = entry
                if entry is not None:
                    self._cache[slug] = entry
        return results

    async def _lookup(self, slug: str) -> EnrichmentCacheEntry | None:
        """Scrape one company page. Failures return None and are not cached."""
        url = self._config.lookup_url_template.format(slug=slug)
        try:
            html = await self._fetcher.fetch_text(url)
        except Exception as e:
            logger.warning("Compensation lookup failed for '%s': %s", slug, e)
            return None

        band = parse_compensation_page(html)
        if band is None:
            logger.debug("No compensation figures for '%s'", slug)
        return EnrichmentCacheEntry(
            min_value=band.min_value if band else None,
            max_value=band.max_value if band else None,
            source=FALLBACK_SOURCE,
            ts=self._now_ms(),
        )

    def _is_fresh(self, entry: EnrichmentCacheEntry, now_ms: int) -> bool:
        return now_ms - entry.ts < self._config.ttl_days * _DAY_MS

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)
