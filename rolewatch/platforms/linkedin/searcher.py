"""LinkedIn guest search URL builder and pagination helpers.

Pure functions, no network dependency.
"""

from urllib.parse import quote_plus, urlencode

from rolewatch.core.config import LinkedInSearch

GUEST_SEARCH_BASE = "https://www.linkedin.com/jobs-guest/jobs/api/seeMoreJobPostings/search"
RESULTS_PER_PAGE = 25


def build_url(
    search: LinkedInSearch,
    location: str,
    page: int = 0,
    *,
    easy_apply: bool = False,
) -> str:
    """Build a guest search URL for one page of results.

    Args:
        search: Keywords and optional company filter (``f_C``).
        location: Free-text location (e.g. "India").
        page: Zero-based page number; ``start`` is always sent.
        easy_apply: Restrict to Easy Apply postings (``f_AL``).

    Returns:
        Fully qualified guest endpoint URL.
    """
    params: dict[str, str] = {
        "keywords": search.keywords,
        "location": location,
    }
    if easy_apply:
        params["f_AL"] = "true"
    if search.company_id:
        params["f_C"] = search.company_id
    params["start"] = str(page * RESULTS_PER_PAGE)
    return f"{GUEST_SEARCH_BASE}?{urlencode(params, quote_via=quote_plus)}"


def should_stop_pagination(cards_found: int, new_ids: int) -> bool:
    """Stop when a page has no cards or adds nothing we have not already seen."""
    return cards_found == 0 or new_ids == 0


def build_job_url(job_id: str) -> str:
    """Build a canonical LinkedIn job detail URL."""
    return f"https://www.linkedin.com/jobs/view/{job_id}"
