"""LinkedIn guest HTML parser: converts search cards into JobRecord objects.

Design rules:
  - Every selector lookup uses a fallback tuple.
  - Missing optional fields fall back to defaults (never crash).
  - A card without a resolvable job id is skipped.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from urllib.parse import urlparse, urlunparse

from bs4 import BeautifulSoup, Tag

from rolewatch.core.schemas import JobRecord
from rolewatch.platforms.linkedin.searcher import build_job_url
from rolewatch.platforms.linkedin.selectors import (
    CARD_SELECTORS,
    COMPANY_SELECTORS,
    ENTITY_URN_ATTR,
    JOB_LINK_SELECTORS,
    LOCATION_SELECTORS,
    POSTED_TIME_SELECTORS,
    TITLE_SELECTORS,
)

logger = logging.getLogger(__name__)

NO_COMPANY = "—"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class LinkedInParser:
    """Parses a guest results page into JobRecord objects (role filter not applied)."""

    def __init__(
        self,
        *,
        job_type: str = "Full time",
        default_company: str = "",
        default_location: str = "India",
        target_companies: list[str] | None = None,
        now: Callable[[], str] = _utc_now_iso,
    ) -> None:
        self._job_type = job_type
        self._default_company = default_company or NO_COMPANY
        self._default_location = default_location
        self._target_companies = [c.lower() for c in (target_companies or []) if c.strip()]
        self._now = now

    def find_cards(self, html: str) -> list[Tag]:
        """Return card elements using the first selector that matches."""
        soup = BeautifulSoup(html, "html.parser")
        for selector in CARD_SELECTORS:
            cards = soup.select(selector)
            if cards:
                logger.debug("Found %d cards with selector '%s'", len(cards), selector)
                return cards
        return []

    def parse_page(self, html: str) -> list[JobRecord]:
        """Parse every card on a page, skipping any that fail."""
        results: list[JobRecord] = []
        for card in self.find_cards(html):
            try:
                record = self.parse_card(card)
                if record is not None:
                    results.append(record)
            except Exception:
                logger.debug("Failed to parse card, skipping", exc_info=True)
        return results

    def parse_card(self, card: Tag) -> JobRecord | None:
        """Parse a single card. Returns None if title or job id is missing."""
        title = self._text_fallback(card, TITLE_SELECTORS)
        if not title:
            logger.debug("Card missing title — skipping")
            return None

        link = self._job_link(card)
        job_id = self._job_id(card, link)
        if job_id is None:
            logger.debug("Card '%s' missing job id — skipping", title)
            return None

        company = self._text_fallback(card, COMPANY_SELECTORS) or self._default_company
        record = JobRecord(
            id=job_id,
            title=title,
            url=link or build_job_url(job_id),
            location=self._text_fallback(card, LOCATION_SELECTORS) or self._default_location,
            department=company,
            type=self._job_type,
            posted_date=self._posted_time(card) or self._now(),
        )
        if self._target_companies:
            is_target = any(tc in company.lower() for tc in self._target_companies)
            record = record.model_copy(update={"is_target_company": is_target})
        return record

    # --- Private helpers ---

    def _job_link(self, card: Tag) -> str:
        """Detail-page URL with tracking query stripped, or "".

        Some guest cards are themselves the <a> element.
        """
        candidates: list[Tag | None] = [card] if card.name == "a" else []
        candidates.extend(card.select_one(s) for s in JOB_LINK_SELECTORS)
        for el in candidates:
            href = el.get("href") if el is not None else None
            if isinstance(href, str) and "/jobs/view/" in href:
                return self._clean_url(href)
        return ""

    @staticmethod
    def _job_id(card: Tag, link: str) -> str | None:
        """Last path segment of the job link, else the numeric tail of the entity URN."""
        if link:
            tail = urlparse(link).path.rstrip("/").rsplit("/", 1)[-1]
            if tail and tail != "view":
                return tail
        urn = card.get(ENTITY_URN_ATTR)
        if isinstance(urn, str) and urn.strip():
            tail = urn.strip().rsplit(":", 1)[-1]
            if tail.isdigit():
                return tail
        return None

    @staticmethod
    def _text_fallback(card: Tag, selectors: tuple[str, ...]) -> str:
        """Try selectors in order, return first non-empty text or ""."""
        for selector in selectors:
            el = card.select_one(selector)
            if el is None:
                continue
            text = " ".join(el.get_text(" ", strip=True).split())
            if text:
                return text
        return ""

    @staticmethod
    def _posted_time(card: Tag) -> str:
        """Prefer the ``datetime`` attribute on <time> elements."""
        for selector in POSTED_TIME_SELECTORS:
            el = card.select_one(selector)
            if el is None:
                continue
            value = el.get("datetime")
            if isinstance(value, str) and value.strip():
                return value.strip()
        return ""

    @staticmethod
    def _clean_url(href: str) -> str:
        """Drop query and fragment; prepend the domain if relative."""
        if href.startswith("/"):
            href = f"https://www.linkedin.com{href}"
        parsed = urlparse(href)
        return urlunparse((parsed.scheme, parsed.netloc, parsed.path, "", "", ""))
