"""Core data models for the job aggregation pipeline."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class JobRecord(BaseModel):
    """A normalized job posting produced by a source adapter.

    Frozen: enrichment and merging produce copies via ``model_copy``.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    url: str = ""
    location: str = ""
    department: str = ""
    type: str = ""
    posted_date: str = ""
    salary_range: str | None = None
    salary_source: str | None = None
    is_target_company: bool | None = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> Any:
        if isinstance(v, int | float):
            return str(v)
        return v

    @field_validator("id")
    @classmethod
    def id_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "id must not be empty"
            raise ValueError(msg)
        return v.strip()

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class SourceResult(BaseModel):
    """One source's section of the artifact."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    target_role: str = Field(default="", alias="targetRole")
    canonical_url: str = Field(
        default="",
        serialization_alias="careersUrl",
        validation_alias=AliasChoices("careersUrl", "canonicalUrl", "canonical_url"),
    )
    jobs: list[JobRecord] = Field(default_factory=list)


class Artifact(BaseModel):
    """The persisted document consumed by the viewer."""

    model_config = ConfigDict(populate_by_name=True)

    fetched_at: str = Field(alias="fetchedAt")
    sources: dict[str, SourceResult] = Field(
        default_factory=dict,
        serialization_alias="companies",
        validation_alias=AliasChoices("companies", "sources"),
    )

    def jobs_for(self, key: str) -> list[JobRecord]:
        """Return the jobs stored under a source key, or [] if absent."""
        result = self.sources.get(key)
        return list(result.jobs) if result is not None else []

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EnrichmentCacheEntry(BaseModel):
    """A cached compensation lookup, keyed by company slug in the cache file.

    ``max_value`` of None records a lookup that found no figures.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    min_value: float | None = None
    max_value: float | None = None
    source: str
    ts: int = Field(ge=0)
