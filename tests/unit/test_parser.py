"""Tests for the LinkedIn guest HTML parser."""

from rolewatch.platforms.linkedin.parser import LinkedInParser

FIXED_NOW = "2026-10-19T06:00:00Z"


def _card(
    *,
    job_id: str = "4012345678",
    slug: str = "senior-software-engineer-at-acme-4012345678",
    title: str = "Senior Software Engineer",
    company: str | None = "Acme",
    company_link: bool = True,
    location: str | None = "Bengaluru, Karnataka, India",
    posted: str | None = "2026-10-15",
    link: bool = True,
) -> str:
    link_html = (
        f'<a class="base-card__full-link" '
        f'href="https://in.linkedin.com/jobs/view/{slug}?position=1&amp;refId=abc">'
        f'<span class="sr-only">{title}</span></a>'
        if link else ""
    )
    if company is None:
        company_html = ""
    elif company_link:
        company_html = (
            f'<h4 class="base-search-card__subtitle">'
            f'<a class="hidden-nested-link" href="https://in.linkedin.com/company/acme">'
            f"\n  {company}\n</a></h4>"
        )
    else:
        company_html = f'<h4 class="base-search-card__subtitle">  {company} </h4>'
    location_html = (
        f'<span class="job-search-card__location">\n  {location}\n</span>' if location else ""
    )
    time_html = (
        f'<time class="job-search-card__listdate" datetime="{posted}">4 days ago</time>'
        if posted else ""
    )
    return (
        f'<li><div class="base-card relative base-search-card job-search-card" '
        f'data-entity-urn="urn:li:jobPosting:{job_id}">'
        f"{link_html}"
        f'<div class="base-search-card__info">'
        f'<h3 class="base-search-card__title">\n   {title}\n</h3>'
        f"{company_html}"
        f'<div class="base-search-card__metadata">{location_html}{time_html}</div>'
        f"</div></div></li>"
    )


def _page(*cards: str) -> str:
    return "".join(cards)


def _parser(**kwargs: object) -> LinkedInParser:
    return LinkedInParser(now=lambda: FIXED_NOW, **kwargs)  # type: ignore[arg-type]


class TestParsePage:
    def test_full_card(self) -> None:
        records = _parser().parse_page(_page(_card()))
        assert len(records) == 1
        r = records[0]
        assert r.id == "senior-software-engineer-at-acme-4012345678"
        assert r.title == "Senior Software Engineer"
        assert r.url == "https://in.linkedin.com/jobs/view/senior-software-engineer-at-acme-4012345678"
        assert r.location == "Bengaluru, Karnataka, India"
        assert r.department == "Acme"
        assert r.type == "Full time"
        assert r.posted_date == "2026-10-15"
        assert r.is_target_company is None

    def test_multiple_cards(self) -> None:
        html = _page(_card(slug="a-1", job_id="1"), _card(slug="b-2", job_id="2"))
        assert [r.id for r in _parser().parse_page(html)] == ["a-1", "b-2"]

    def test_empty_page(self) -> None:
        assert _parser().parse_page("") == []
        assert _parser().parse_page("<html><body>No more jobs</body></html>") == []

    def test_company_without_link(self) -> None:
        r = _parser().parse_page(_card(company="Globex", company_link=False))[0]
        assert r.department == "Globex"

    def test_missing_company_uses_default(self) -> None:
        r = _parser(default_company="LinkedIn").parse_page(_card(company=None))[0]
        assert r.department == "LinkedIn"

    def test_missing_company_no_default(self) -> None:
        r = _parser().parse_page(_card(company=None))[0]
        assert r.department == "—"

    def test_missing_location_falls_back(self) -> None:
        r = _parser().parse_page(_card(location=None))[0]
        assert r.location == "India"

    def test_missing_date_uses_now(self) -> None:
        r = _parser().parse_page(_card(posted=None))[0]
        assert r.posted_date == FIXED_NOW

    def test_no_link_uses_entity_urn(self) -> None:
        r = _parser().parse_page(_card(link=False, job_id="555"))[0]
        assert r.id == "555"
        assert r.url == "https://www.linkedin.com/jobs/view/555"

    def test_missing_title_skipped(self) -> None:
        html = _card(title="")
        assert _parser().parse_page(html) == []

    def test_no_identity_skipped(self) -> None:
        html = _card(link=False).replace('data-entity-urn="urn:li:jobPosting:4012345678"', "")
        assert _parser().parse_page(html) == []

    def test_custom_type(self) -> None:
        r = _parser(job_type="Easy Apply").parse_page(_card())[0]
        assert r.type == "Easy Apply"

    def test_target_company_flag(self) -> None:
        parser = _parser(target_companies=["salesforce", "booking.com"])
        html = _page(
            _card(slug="a-1", company="Salesforce"),
            _card(slug="b-2", company="Booking.com"),
            _card(slug="c-3", company="Acme"),
        )
        flags = {r.id: r.is_target_company for r in parser.parse_page(html)}
        assert flags == {"a-1": True, "b-2": True, "c-3": False}

    def test_anchor_card(self) -> None:
        html = (
            '<a class="base-card base-search-card" '
            'href="https://www.linkedin.com/jobs/view/777/?trk=guest">'
            '<div class="base-search-card__info">'
            '<h3 class="base-search-card__title">Sr. Software Engineer</h3>'
            "</div></a>"
        )
        r = _parser().parse_page(html)[0]
        assert r.id == "777"
        assert r.url == "https://www.linkedin.com/jobs/view/777/"

    def test_relative_link(self) -> None:
        html = _card().replace(
            "https://in.linkedin.com/jobs/view/senior-software-engineer-at-acme-4012345678",
            "/jobs/view/rel-99",
        )
        r = _parser().parse_page(html)[0]
        assert r.url == "https://www.linkedin.com/jobs/view/rel-99"
        assert r.id == "rel-99"
