"""Careers XML feed adapter (Salesforce-style ``<job>`` records).

Each ``<job>`` element carries CDATA children: requisitionid, title, url,
city, state, country, category, jobtype, date. Only jobs in the configured
country that pass the role filter are returned.
"""

import logging
import xml.etree.ElementTree as ET

from rolewatch.core.schemas import JobRecord
from rolewatch.platforms.base import SourceAdapter

logger = logging.getLogger(__name__)


def parse_feed(xml_text: str) -> list[dict[str, str]]:
    """Extract every ``<job>`` element into a flat tag -> text mapping.

    Raises ``xml.etree.ElementTree.ParseError`` on malformed XML.
    """
    root = ET.fromstring(xml_text)
    jobs: list[dict[str, str]] = []
    for element in root.iter("job"):
        jobs.append({child.tag: (child.text or "").strip() for child in element})
    return jobs


class FeedAdapter(SourceAdapter):
    """Single-request XML feed source."""

    async def _fetch(self) -> list[JobRecord]:
        xml_text = await self._fetcher.fetch_text(self._config.url)
        entries = parse_feed(xml_text)
        logger.debug("[%s] Feed contains %d jobs", self._config.name, len(entries))

        jobs: list[JobRecord] = []
        for entry in entries:
            record = self._to_record(entry)
            if record is not None:
                jobs.append(record)
        return jobs

    def _to_record(self, entry: dict[str, str]) -> JobRecord | None:
        country = entry.get("country", "")
        if country != self._config.country:
            return None

        title = entry.get("title", "")
        if not self._role_filter.matches(title):
            return None

        req_id = entry.get("requisitionid", "")
        if not req_id:
            logger.debug("[%s] Skipping '%s': no requisition id", self._config.name, title)
            return None

        location = ", ".join(
            part for part in (entry.get("city", ""), entry.get("state", ""), country) if part
        )
        return JobRecord(
            id=req_id,
            title=title,
            url=entry.get("url", ""),
            location=location,
            department=entry.get("category", ""),
            type=entry.get("jobtype", ""),
            posted_date=entry.get("date", ""),
        )
