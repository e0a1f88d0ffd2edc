"""JSON jobs API adapter (iCIMS/Jibe-style ``{"jobs": [{"data": {...}}]}``)."""

import json
import logging
from typing import Any

from rolewatch.core.schemas import JobRecord
from rolewatch.platforms.base import SourceAdapter

logger = logging.getLogger(__name__)

DEFAULT_EMPLOYMENT_TYPE = "Full time"
NO_DEPARTMENT = "—"


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


class JobsApiAdapter(SourceAdapter):
    """Single-request JSON search endpoint."""

    async def _fetch(self) -> list[JobRecord]:
        raw = await self._fetcher.fetch_text(self._config.url, {"Accept": "application/json"})
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            msg = f"expected a JSON object, got {type(payload).__name__}"
            raise ValueError(msg)

        items = payload.get("jobs") or []
        jobs: list[JobRecord] = []
        for item in items:
            data = item.get("data") if isinstance(item, dict) else None
            record = self._to_record(data or {})
            if record is not None:
                jobs.append(record)
        return jobs

    def _to_record(self, data: dict[str, Any]) -> JobRecord | None:
        title = _text(data.get("title"))
        if not self._role_filter.matches(title):
            return None

        slug = _text(data.get("slug"))
        job_id = _text(data.get("req_id")) or slug
        if not job_id:
            logger.debug("[%s] Skipping '%s': no req_id or slug", self._config.name, title)
            return None

        url = _text(data.get("apply_url"))
        if not url and slug and self._config.job_url_template:
            url = self._config.job_url_template.format(slug=slug)

        location = _text(data.get("full_location")) or ", ".join(
            part
            for part in (_text(data.get(k)) for k in ("city", "state", "country"))
            if part
        )

        categories = data.get("category") or []
        if isinstance(categories, str):
            categories = [categories]
        department = ", ".join(c.strip() for c in categories if isinstance(c, str) and c.strip())

        return JobRecord(
            id=job_id,
            title=title,
            url=url,
            location=location,
            department=department or NO_DEPARTMENT,
            type=_text(data.get("employment_type")) or DEFAULT_EMPLOYMENT_TYPE,
            posted_date=_text(data.get("posted_date")) or _text(data.get("create_date")),
        )
