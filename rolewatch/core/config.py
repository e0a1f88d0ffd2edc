"""Configuration models and YAML loader for the job aggregation pipeline."""

import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SourceKind = Literal["feed", "jobs_api", "linkedin", "linkedin_easy_apply"]


class RoleRule(BaseModel):
    """Title acceptance rule for one source class.

    Patterns are regular expressions applied case-insensitively.
    Exclusions always win over inclusions.
    """

    model_config = ConfigDict(frozen=True)

    require_any: tuple[str, ...] = ()
    exclude_any: tuple[str, ...] = ()
    senior_technical: bool = False

    @field_validator("require_any", "exclude_any")
    @classmethod
    def patterns_compile(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                msg = f"invalid role pattern {pattern!r}: {e}"
                raise ValueError(msg) from e
        return v


_SENIOR_SWE = r"\b(senior|sr\.?)\s+software\s+engineer"
_NOT_STAFF_OR_ABOVE = r"\b(staff|principal|lead|manager|director)\b"

DEFAULT_ROLE_RULES: dict[str, RoleRule] = {
    "salesforce": RoleRule(
        require_any=(r"\bsmts\b", r"senior member of technical staff"),
    ),
    "salesforce_swe": RoleRule(
        require_any=(r"\b(smts|software\s+engineer|swe|mts)\b",),
    ),
    "booking": RoleRule(
        require_any=(r"senior\s+software\s+engineer",),
    ),
    "linkedin": RoleRule(
        require_any=(_SENIOR_SWE,),
        exclude_any=(_NOT_STAFF_OR_ABOVE,),
    ),
    "broad": RoleRule(
        require_any=(_SENIOR_SWE,),
        exclude_any=(
            _NOT_STAFF_OR_ABOVE,
            r"\b(front[\s-]?end|ui|web\s+developer)\b",
            r"\b(security|secops|appsec)\b",
            r"\b(ml|machine\s+learning|ai|data\s+scien\w*)\b",
            r"\b(qa|sdet|test|testing|quality)\b",
            r"\b(management|head|vp)\b",
            r"\b(recruit\w*|talent|sourcer)\b",
        ),
        senior_technical=True,
    ),
}


class CompRange(BaseModel):
    """Compensation band in lakhs per annum (LPA)."""

    model_config = ConfigDict(frozen=True)

    min_value: float | None = Field(default=None, ge=0)
    max_value: float = Field(ge=0)


DEFAULT_CURATED_COMP: dict[str, CompRange] = {
    "salesforce": CompRange(min_value=45, max_value=75),
    "booking.com": CompRange(min_value=50, max_value=80),
    "linkedin": CompRange(min_value=55, max_value=90),
    "microsoft": CompRange(min_value=45, max_value=80),
    "google": CompRange(min_value=55, max_value=95),
    "amazon": CompRange(min_value=40, max_value=70),
    "uber": CompRange(min_value=55, max_value=90),
    "atlassian": CompRange(min_value=60, max_value=100),
    "databricks": CompRange(min_value=70, max_value=120),
    "stripe": CompRange(min_value=60, max_value=100),
    "rippling": CompRange(min_value=50, max_value=85),
    "nvidia": CompRange(min_value=50, max_value=85),
    "adobe": CompRange(min_value=40, max_value=65),
    "oracle": CompRange(min_value=30, max_value=50),
    "intel": CompRange(min_value=30, max_value=50),
    "freshworks": CompRange(min_value=30, max_value=50),
}


class LinkedInSearch(BaseModel):
    """One guest search query run by a LinkedIn source."""

    keywords: str
    label: str = ""
    company_id: str | None = None
    role_class: str | None = None
    apply_role_filter: bool = True

    @field_validator("keywords")
    @classmethod
    def keywords_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "keywords must not be empty"
            raise ValueError(msg)
        return v.strip()


class SourceConfig(BaseModel):
    """A single upstream source and how its section appears in the artifact."""

    key: str
    kind: SourceKind
    name: str
    target_role: str = ""
    canonical_url: str = ""
    role_class: str
    secondary: bool = False
    enrich: bool = False

    # feed / jobs_api
    url: str = ""
    country: str = "India"
    job_url_template: str = ""

    # linkedin
    location: str = "India"
    searches: list[LinkedInSearch] = Field(default_factory=list)
    max_pages: int = Field(default=4, ge=1, le=10)
    default_company: str = ""
    target_companies: list[str] = Field(default_factory=list)

    @field_validator("key")
    @classmethod
    def key_is_slug(cls, v: str) -> str:
        if not re.fullmatch(r"[a-z0-9_]+", v):
            msg = f"source key must be lowercase [a-z0-9_]: {v!r}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def kind_fields_present(self) -> "SourceConfig":
        if self.kind in ("feed", "jobs_api") and not self.url:
            msg = f"source '{self.key}': url is required for kind '{self.kind}'"
            raise ValueError(msg)
        if self.kind in ("linkedin", "linkedin_easy_apply") and not self.searches:
            msg = f"source '{self.key}': at least one search is required"
            raise ValueError(msg)
        return self


DEFAULT_SOURCES: list[SourceConfig] = [
    SourceConfig(
        key="salesforce",
        kind="feed",
        name="Salesforce",
        target_role="Senior Member of Technical Staff (SMTS)",
        canonical_url="https://careers.salesforce.com/en/jobs/?country=India",
        role_class="salesforce",
        url="https://careers.salesforce.com/en/jobs/xml/?rss=true",
    ),
    SourceConfig(
        key="booking",
        kind="jobs_api",
        name="Booking.com",
        target_role="Senior Software Engineer",
        canonical_url="https://jobs.booking.com/booking/jobs?location=India",
        role_class="booking",
        url="https://jobs.booking.com/api/jobs?location=India&limit=100",
        job_url_template="https://jobs.booking.com/booking/jobs/{slug}",
    ),
    SourceConfig(
        key="linkedin",
        kind="linkedin",
        name="LinkedIn",
        target_role="Senior Software Engineer",
        canonical_url="https://www.linkedin.com/jobs/search/?f_C=1337&geoId=102713980",
        role_class="linkedin",
        searches=[LinkedInSearch(keywords="Senior Software Engineer", company_id="1337")],
        default_company="LinkedIn",
    ),
    SourceConfig(
        key="linkedin_easy",
        kind="linkedin_easy_apply",
        name="LinkedIn Easy Apply",
        target_role="Senior Software Engineer (all companies)",
        canonical_url=(
            "https://www.linkedin.com/jobs/search/"
            "?keywords=Senior+Software+Engineer&location=India&f_AL=true"
        ),
        role_class="broad",
        secondary=True,
        enrich=True,
        searches=[
            LinkedInSearch(keywords="Senior Software Engineer", label="Sr. SWE (all)"),
            LinkedInSearch(
                keywords="SMTS", company_id="3185", label="SMTS @ Salesforce",
                role_class="salesforce_swe",
            ),
            LinkedInSearch(
                keywords="Software Engineer", company_id="3185", label="SWE @ Salesforce",
                role_class="salesforce_swe",
            ),
            LinkedInSearch(
                keywords="Software Engineer", company_id="2498", label="SWE @ Booking.com",
                apply_role_filter=False,
            ),
        ],
        target_companies=["salesforce", "booking.com", "linkedin"],
    ),
]


class OutputConfig(BaseModel):
    """Where the artifact and the enrichment cache live."""

    artifact_path: str = "data/jobs.json"
    enrichment_cache_path: str = "data/comp-cache.json"


class RetentionConfig(BaseModel):
    """Rolling window for postings no longer returned by their source."""

    window_days: int = Field(default=7, ge=1)


class HttpConfig(BaseModel):
    """Upstream request settings."""

    timeout_s: float = Field(default=30.0, gt=0)
    user_agent: str = "Mozilla/5.0 (compatible; JobTracker/1.0)"
    max_redirects: int = Field(default=5, ge=0, le=20)


class EnrichmentConfig(BaseModel):
    """Compensation enrichment thresholds, cache and fallback lookup."""

    min_compensation_lpa: float = Field(default=40.0, ge=0)
    ttl_days: int = Field(default=14, ge=1)
    concurrency: int = Field(default=5, ge=1, le=20)
    batch_delay_s: float = Field(default=1.0, ge=0)
    lookup_url_template: str = (
        "https://www.levels.fyi/companies/{slug}/salaries/software-engineer/locations/india"
    )
    curated: dict[str, CompRange] = Field(default_factory=lambda: dict(DEFAULT_CURATED_COMP))

    @field_validator("lookup_url_template")
    @classmethod
    def template_has_slug(cls, v: str) -> str:
        if v and "{slug}" not in v:
            msg = "lookup_url_template must contain '{slug}'"
            raise ValueError(msg)
        return v


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    output: OutputConfig = Field(default_factory=OutputConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    role_rules: dict[str, RoleRule] = Field(default_factory=lambda: dict(DEFAULT_ROLE_RULES))
    sources: list[SourceConfig] = Field(default_factory=lambda: list(DEFAULT_SOURCES))

    @field_validator("role_rules", mode="before")
    @classmethod
    def overlay_default_rules(cls, v: Any) -> Any:
        """YAML rules extend and override the built-in classes."""
        if isinstance(v, dict):
            return {**DEFAULT_ROLE_RULES, **v}
        return v

    @field_validator("sources")
    @classmethod
    def at_least_one_source(cls, v: list[SourceConfig]) -> list[SourceConfig]:
        if not v:
            msg = "at least one source must be configured"
            raise ValueError(msg)
        keys = [s.key for s in v]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            msg = f"duplicate source keys: {', '.join(duplicates)}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def role_classes_known(self) -> "Settings":
        for source in self.sources:
            classes = {source.role_class}
            classes.update(s.role_class for s in source.searches if s.role_class)
            missing = sorted(c for c in classes if c not in self.role_rules)
            if missing:
                msg = f"source '{source.key}' uses unknown role class(es): {', '.join(missing)}"
                raise ValueError(msg)
        return self

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls.model_validate(raw)
