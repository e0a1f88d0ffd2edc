"""Abstract base class for source adapters."""

import logging
from abc import ABC, abstractmethod

from rolewatch.core.config import RoleRule, SourceConfig
from rolewatch.core.http import TextFetcher
from rolewatch.core.schemas import JobRecord
from rolewatch.pipeline.matcher import RoleFilter

logger = logging.getLogger(__name__)


class SourceAdapter(ABC):
    """Base class that every upstream adapter must implement.

    Subclasses implement ``_fetch``; callers use ``fetch``, which never
    raises: any failure is logged and yields an empty list. ``failed`` then
    stays True until the next fetch.
    """

    def __init__(
        self,
        config: SourceConfig,
        fetcher: TextFetcher,
        role_rules: dict[str, RoleRule],
    ) -> None:
        self._config = config
        self._fetcher = fetcher
        self._role_rules = role_rules
        self._role_filter = RoleFilter(role_rules[config.role_class])
        self._failed = False

    @property
    def source_key(self) -> str:
        return self._config.key

    @property
    def config(self) -> SourceConfig:
        return self._config

    @property
    def failed(self) -> bool:
        """True when the last ``fetch`` ended in an error."""
        return self._failed

    async def fetch(self) -> list[JobRecord]:
        """Fetch, extract and role-filter this source's postings."""
        logger.info("[%s] Fetching...", self._config.name)
        self._failed = False
        try:
            jobs = await self._fetch()
        except Exception as e:
            logger.error("[%s] Error: %s", self._config.name, e)
            logger.debug("[%s] Traceback", self._config.name, exc_info=True)
            self._failed = True
            return []
        logger.info("[%s] Found %d matching roles", self._config.name, len(jobs))
        return jobs

    @abstractmethod
    async def _fetch(self) -> list[JobRecord]:
        """Retrieve and extract records that pass the source's role filter."""
