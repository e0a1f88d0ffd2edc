"""LinkedIn guest search-card CSS selectors with fallbacks.

Ordered by stability. Each constant is a tuple so callers iterate until a
match is found.
"""

# --- Job card container ---
CARD_SELECTORS: tuple[str, ...] = (
    ".base-search-card",
    ".job-search-card",
    ".base-card",
)

# --- Title ---
TITLE_SELECTORS: tuple[str, ...] = (
    "h3.base-search-card__title",
    ".base-search-card__title",
    "h3",
)

# --- Link to the job detail page ---
JOB_LINK_SELECTORS: tuple[str, ...] = (
    "a.base-card__full-link",
    'a[href*="/jobs/view/"]',
)

# --- Company name (link first, then plain subtitle text) ---
COMPANY_SELECTORS: tuple[str, ...] = (
    ".base-search-card__subtitle a",
    "h4.base-search-card__subtitle",
    ".base-search-card__subtitle",
)

# --- Location ---
LOCATION_SELECTORS: tuple[str, ...] = (
    ".job-search-card__location",
    ".base-search-card__metadata span",
)

# --- Posted time ---
POSTED_TIME_SELECTORS: tuple[str, ...] = (
    "time.job-search-card__listdate",
    "time.job-search-card__listdate--new",
    "time",
)

# --- Job ID attribute on the card element ---
ENTITY_URN_ATTR: str = "data-entity-urn"
