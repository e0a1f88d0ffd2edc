"""Tests for LinkedIn URL builder and pagination helpers."""

from urllib.parse import parse_qs, urlparse

from rolewatch.core.config import LinkedInSearch
from rolewatch.platforms.linkedin.searcher import (
    GUEST_SEARCH_BASE,
    RESULTS_PER_PAGE,
    build_job_url,
    build_url,
    should_stop_pagination,
)


def _parse(url: str) -> dict[str, list[str]]:
    """Parse URL and return query params as dict."""
    return parse_qs(urlparse(url).query)


# ---------------------------------------------------------------------------
# TestBuildUrl
# ---------------------------------------------------------------------------


class TestBuildUrl:
    """URL builder: keyword encoding, filters, pagination."""

    def test_guest_endpoint(self) -> None:
        url = build_url(LinkedInSearch(keywords="Senior Software Engineer"), "India")
        assert url.startswith(f"{GUEST_SEARCH_BASE}?")

    def test_keyword_encoded(self) -> None:
        url = build_url(LinkedInSearch(keywords="Senior Software Engineer"), "India")
        assert "keywords=Senior+Software+Engineer" in url
        assert _parse(url)["keywords"] == ["Senior Software Engineer"]

    def test_keyword_special_chars(self) -> None:
        url = build_url(LinkedInSearch(keywords="Sr. SWE (C++)"), "India")
        assert "C%2B%2B" in url
        assert _parse(url)["keywords"] == ["Sr. SWE (C++)"]

    def test_location(self) -> None:
        url = build_url(LinkedInSearch(keywords="SMTS"), "Bengaluru, India")
        assert _parse(url)["location"] == ["Bengaluru, India"]

    def test_first_page_sends_start_zero(self) -> None:
        assert _parse(build_url(LinkedInSearch(keywords="SMTS"), "India"))["start"] == ["0"]

    def test_pagination_offset(self) -> None:
        url = build_url(LinkedInSearch(keywords="SMTS"), "India", page=3)
        assert _parse(url)["start"] == [str(3 * RESULTS_PER_PAGE)]

    def test_company_filter(self) -> None:
        url = build_url(LinkedInSearch(keywords="SMTS", company_id="3185"), "India")
        assert _parse(url)["f_C"] == ["3185"]

    def test_no_company_filter_by_default(self) -> None:
        assert "f_C" not in _parse(build_url(LinkedInSearch(keywords="SMTS"), "India"))

    def test_easy_apply_flag(self) -> None:
        url = build_url(LinkedInSearch(keywords="SMTS"), "India", easy_apply=True)
        assert _parse(url)["f_AL"] == ["true"]

    def test_no_easy_apply_by_default(self) -> None:
        assert "f_AL" not in _parse(build_url(LinkedInSearch(keywords="SMTS"), "India"))

    def test_parameter_order(self) -> None:
        search = LinkedInSearch(keywords="SMTS", company_id="3185")
        url = build_url(search, "India", page=1, easy_apply=True)
        keys = [pair.split("=")[0] for pair in urlparse(url).query.split("&")]
        assert keys == ["keywords", "location", "f_AL", "f_C", "start"]


# ---------------------------------------------------------------------------
# TestPagination
# ---------------------------------------------------------------------------


class TestShouldStopPagination:
    def test_no_cards(self) -> None:
        assert should_stop_pagination(0, 0) is True

    def test_no_new_ids(self) -> None:
        assert should_stop_pagination(25, 0) is True

    def test_partial_page_continues(self) -> None:
        assert should_stop_pagination(10, 10) is False

    def test_full_page_continues(self) -> None:
        assert should_stop_pagination(RESULTS_PER_PAGE, 3) is False


class TestBuildJobUrl:
    def test_canonical(self) -> None:
        assert build_job_url("4012345678") == "https://www.linkedin.com/jobs/view/4012345678"
