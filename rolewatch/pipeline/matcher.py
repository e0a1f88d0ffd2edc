"""Title filters: per-source role rules and cross-source dedup.

Role filter order:
  1. exclusion patterns: any hit rejects, regardless of inclusions
  2. inclusion patterns: at least one must hit (none configured = pass)
  3. senior/technical: optional, for broad cross-company searches
"""

import logging
import re

from rolewatch.core.config import RoleRule
from rolewatch.core.schemas import JobRecord

logger = logging.getLogger(__name__)

SENIORITY_PATTERN = re.compile(r"\b(senior|sr\.?|smts|lead|sde[\s-]*(ii|iii|2|3))(?=\W|$)", re.IGNORECASE)
TECHNICAL_PATTERN = re.compile(
    r"\b(engineer|engineering|developer|sde|swe|programmer|member of technical staff)\b",
    re.IGNORECASE,
)


def normalize_title(title: str) -> str:
    """Lower-case, trim and collapse inner whitespace."""
    return " ".join(title.lower().split())


def looks_senior_technical(title: str) -> bool:
    """True when the title names both a seniority level and an engineering role."""
    return bool(SENIORITY_PATTERN.search(title)) and bool(TECHNICAL_PATTERN.search(title))


class RoleFilter:
    """Pure title predicate built from one ``RoleRule``."""

    def __init__(self, rule: RoleRule) -> None:
        self._require = [re.compile(p, re.IGNORECASE) for p in rule.require_any]
        self._exclude = [re.compile(p, re.IGNORECASE) for p in rule.exclude_any]
        self._senior_technical = rule.senior_technical

    def matches(self, title: str) -> bool:
        if not title.strip():
            return False
        if any(p.search(title) for p in self._exclude):
            return False
        if self._require and not any(p.search(title) for p in self._require):
            return False
        if self._senior_technical and not looks_senior_technical(title):
            return False
        return True

    def __call__(self, records: list[JobRecord]) -> list[JobRecord]:
        result = [r for r in records if self.matches(r.title)]
        dropped = len(records) - len(result)
        if dropped:
            logger.debug("RoleFilter: removed %d records", dropped)
        return result


def matches(title: str, source_class: str, rules: dict[str, RoleRule]) -> bool:
    """Decide whether ``title`` is a target role for ``source_class``.

    Unknown classes reject everything.
    """
    rule = rules.get(source_class)
    if rule is None:
        logger.debug("No role rule for class '%s', rejecting", source_class)
        return False
    return RoleFilter(rule).matches(title)


class CrossSourceDedupFilter:
    """Drop records whose normalized title is already covered by a primary source."""

    def __init__(self, covered_titles: set[str]) -> None:
        self._covered = {normalize_title(t) for t in covered_titles}

    @classmethod
    def from_records(cls, records: list[JobRecord]) -> "CrossSourceDedupFilter":
        return cls({r.title for r in records})

    def __call__(self, records: list[JobRecord]) -> list[JobRecord]:
        if not self._covered:
            return records
        result = [r for r in records if normalize_title(r.title) not in self._covered]
        dropped = len(records) - len(result)
        if dropped:
            logger.debug("CrossSourceDedupFilter: removed %d duplicates", dropped)
        return result
