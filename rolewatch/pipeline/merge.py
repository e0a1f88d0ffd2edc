"""Rolling-window merge of freshly fetched records with previously kept ones.

Rules:
  - identity is ``id`` compared as a string, unique in the result
  - previous records survive only while ``postedDate`` is inside the window;
    an unparseable date counts as outside it
  - fresh records always win and are always kept
  - order is ``postedDate`` descending, unparseable dates last, ties by id
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime

from rolewatch.core.schemas import JobRecord

logger = logging.getLogger(__name__)

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Human-readable formats seen in careers feeds.
_LOOSE_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%d %B %Y", "%d %b %Y", "%m/%d/%Y")


def _parse_loose(text: str) -> datetime | None:
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        pass
    for fmt in _LOOSE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_posted_date(value: str | None) -> datetime | None:
    """Parse a posting date into an aware UTC datetime, or None.

    Accepts ISO-8601 timestamps (``Z`` suffix included), bare ``YYYY-MM-DD``
    dates and RFC 2822 dates as found in RSS feeds. Naive values are UTC.
    """
    if not value or not value.strip():
        return None
    text = value.strip()

    parsed: datetime | None = None
    if _DATE_ONLY.match(text):
        try:
            parsed = datetime.strptime(text, "%Y-%m-%d")
        except ValueError:
            return None
    else:
        iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            parsed = datetime.fromisoformat(iso)
        except ValueError:
            parsed = _parse_loose(text)
            if parsed is None:
                return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _sort_key(record: JobRecord) -> tuple[int, float, str]:
    posted = parse_posted_date(record.posted_date)
    if posted is None:
        return (1, 0.0, record.id)
    return (0, -posted.timestamp(), record.id)


def sort_records(records: list[JobRecord]) -> list[JobRecord]:
    """Most recent first; unknown dates last; ties broken by id."""
    return sorted(records, key=_sort_key)


def merge_records(
    previous: list[JobRecord],
    fresh: list[JobRecord],
    window_days: int,
    now: datetime | None = None,
) -> list[JobRecord]:
    """Combine a source's previous records with its fresh fetch.

    Args:
        previous: Records persisted by the last run for this source.
        fresh: Records fetched (and filtered) in this run.
        window_days: How long a no-longer-fetched record is retained.
        now: Reference time for the window (defaults to current UTC time).

    Returns:
        Deduplicated records sorted by ``postedDate`` descending.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = now - timedelta(days=window_days)

    by_id: dict[str, JobRecord] = {}
    expired = 0
    for record in previous:
        posted = parse_posted_date(record.posted_date)
        if posted is None or posted < cutoff:
            expired += 1
            continue
        by_id[str(record.id)] = record

    for record in fresh:
        by_id[str(record.id)] = record

    merged = sort_records(list(by_id.values()))
    logger.debug(
        "Merged %d previous (%d expired) with %d fresh -> %d records",
        len(previous), expired, len(fresh), len(merged),
    )
    return merged


def count_retained(merged: list[JobRecord], fresh: list[JobRecord]) -> int:
    """Number of merged records carried over from previous runs only."""
    fresh_ids = {str(r.id) for r in fresh}
    return sum(1 for r in merged if str(r.id) not in fresh_ids)
