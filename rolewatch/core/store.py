"""JSON persistence for the artifact and the enrichment cache.

Both files are replaced atomically: the new content is written to a temp
file beside the target and moved into place with ``os.replace``, so readers
see either the previous document or the new one, never a partial write.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from rolewatch.core.schemas import Artifact, EnrichmentCacheEntry, JobRecord, SourceResult

logger = logging.getLogger(__name__)


def atomic_write_json(data: Any, path: str | Path) -> Path:
    """Serialize ``data`` as UTF-8 JSON and atomically replace ``path``.

    Parent directories are created as needed. Raises OSError / TypeError on
    failure, leaving any existing file untouched.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def load_artifact(path: str | Path) -> Artifact | None:
    """Load the previous artifact, or None if it is missing or unreadable.

    Validation is per record: a malformed job or section is logged and
    dropped while the rest of the history is kept.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No previous artifact at %s, starting fresh", path)
        return None
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable artifact %s: %s", path, e)
        return None
    if not isinstance(raw, dict):
        logger.warning("Artifact %s is not a JSON object, ignoring", path)
        return None

    sections = raw.get("companies", raw.get("sources"))
    if not isinstance(sections, dict):
        logger.warning("Artifact %s has no source sections, ignoring", path)
        return None

    sources: dict[str, SourceResult] = {}
    for key, section in sections.items():
        result = _load_section(key, section)
        if result is not None:
            sources[key] = result

    fetched_at = raw.get("fetchedAt")
    return Artifact(
        fetched_at=fetched_at if isinstance(fetched_at, str) else "",
        sources=sources,
    )


def _load_section(key: str, section: Any) -> SourceResult | None:
    if not isinstance(section, dict):
        logger.warning("Dropping malformed artifact section '%s'", key)
        return None

    raw_jobs = section.get("jobs")
    jobs: list[JobRecord] = []
    for index, item in enumerate(raw_jobs if isinstance(raw_jobs, list) else []):
        try:
            jobs.append(JobRecord.model_validate(item))
        except ValidationError as e:
            logger.warning("Dropping malformed job #%d in section '%s': %s", index, key, e)

    try:
        return SourceResult.model_validate({**section, "jobs": jobs})
    except ValidationError as e:
        logger.warning("Section '%s' has malformed metadata, keeping its jobs: %s", key, e)
        return SourceResult(name=key, jobs=jobs)


def write_artifact(artifact: Artifact, path: str | Path) -> Path:
    """Write the artifact with viewer-facing key names."""
    written = atomic_write_json(artifact.to_json_dict(), path)
    logger.info("Artifact written to %s", written)
    return written


def load_enrichment_cache(path: str | Path) -> dict[str, EnrichmentCacheEntry]:
    """Read the slug -> entry map. Bad entries are skipped, a bad file yields {}."""
    path = Path(path)
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable enrichment cache %s: %s", path, e)
        return {}
    if not isinstance(raw, dict):
        logger.warning("Enrichment cache %s is not a JSON object, ignoring", path)
        return {}

    cache: dict[str, EnrichmentCacheEntry] = {}
    for slug, value in raw.items():
        try:
            cache[slug] = EnrichmentCacheEntry.model_validate(value)
        except ValidationError:
            logger.debug("Dropping malformed cache entry '%s'", slug)
    return cache


def save_enrichment_cache(cache: dict[str, EnrichmentCacheEntry], path: str | Path) -> Path:
    data = {slug: entry.model_dump(by_alias=True) for slug, entry in sorted(cache.items())}
    return atomic_write_json(data, path)
