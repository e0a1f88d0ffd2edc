"""Tests for the careers XML feed adapter."""

import xml.etree.ElementTree as ET
from textwrap import dedent

import pytest

from rolewatch.core.config import DEFAULT_ROLE_RULES, SourceConfig
from rolewatch.core.http import FetchError
from rolewatch.platforms.feed import FeedAdapter, parse_feed

FEED_URL = "https://careers.example.com/jobs.xml"


def _job_xml(
    *,
    req: str = "JR100",
    title: str = "Senior Member of Technical Staff",
    country: str = "India",
    city: str = "Bangalore",
    state: str = "Karnataka",
    extra: str = "",
) -> str:
    return dedent(f"""\
        <job>
          <requisitionid><![CDATA[{req}]]></requisitionid>
          <title><![CDATA[{title}]]></title>
          <url><![CDATA[https://careers.example.com/jobs/{req}]]></url>
          <city><![CDATA[{city}]]></city>
          <state><![CDATA[{state}]]></state>
          <country><![CDATA[{country}]]></country>
          <category><![CDATA[Software Engineering]]></category>
          <jobtype><![CDATA[Full time]]></jobtype>
          <date><![CDATA[2026-10-10]]></date>
          {extra}
        </job>""")


def _feed(*jobs: str) -> str:
    return f"<?xml version='1.0' encoding='UTF-8'?><source>{''.join(jobs)}</source>"


class FakeFetcher:
    def __init__(self, body: str | None = None, error: Exception | None = None) -> None:
        self._body = body
        self._error = error
        self.calls: list[str] = []

    async def fetch_text(self, url: str, headers: dict[str, str] | None = None) -> str:
        self.calls.append(url)
        if self._error is not None:
            raise self._error
        return self._body or ""


def _adapter(fetcher: FakeFetcher) -> FeedAdapter:
    config = SourceConfig(
        key="salesforce", kind="feed", name="Salesforce", role_class="salesforce", url=FEED_URL,
    )
    return FeedAdapter(config, fetcher, DEFAULT_ROLE_RULES)


class TestParseFeed:
    def test_extracts_fields(self) -> None:
        entries = parse_feed(_feed(_job_xml()))
        assert len(entries) == 1
        assert entries[0]["requisitionid"] == "JR100"
        assert entries[0]["title"] == "Senior Member of Technical Staff"
        assert entries[0]["city"] == "Bangalore"

    def test_malformed_raises(self) -> None:
        with pytest.raises(ET.ParseError):
            parse_feed("<source><job><title>broken")


class TestFeedAdapter:
    async def test_filters_country_and_role(self) -> None:
        body = _feed(
            _job_xml(req="JR1"),
            _job_xml(req="JR2", country="United States"),
            _job_xml(req="JR3", title="Lead Member of Technical Staff"),
            _job_xml(req="JR4", title="SMTS, Platform"),
        )
        fetcher = FakeFetcher(body)
        jobs = await _adapter(fetcher).fetch()
        assert [j.id for j in jobs] == ["JR1", "JR4"]
        assert fetcher.calls == [FEED_URL]

    async def test_record_fields(self) -> None:
        jobs = await _adapter(FakeFetcher(_feed(_job_xml()))).fetch()
        job = jobs[0]
        assert job.url == "https://careers.example.com/jobs/JR100"
        assert job.location == "Bangalore, Karnataka, India"
        assert job.department == "Software Engineering"
        assert job.type == "Full time"
        assert job.posted_date == "2026-10-10"

    async def test_missing_fields_use_fallbacks(self) -> None:
        body = _feed(_job_xml(city="", state=""))
        job = (await _adapter(FakeFetcher(body)).fetch())[0]
        assert job.location == "India"

    async def test_missing_requisition_id_skipped(self) -> None:
        body = _feed(_job_xml(req=""))
        assert await _adapter(FakeFetcher(body)).fetch() == []

    async def test_fetch_error_returns_empty(self) -> None:
        fetcher = FakeFetcher(error=FetchError(FEED_URL, "HTTP 500"))
        adapter = _adapter(fetcher)
        assert await adapter.fetch() == []
        assert adapter.failed is True

    async def test_failed_flag_resets_on_success(self) -> None:
        fetcher = FakeFetcher(error=FetchError(FEED_URL, "HTTP 500"))
        adapter = _adapter(fetcher)
        await adapter.fetch()
        fetcher._error = None
        fetcher._body = _feed(_job_xml())
        assert [j.id for j in await adapter.fetch()] == ["JR100"]
        assert adapter.failed is False

    async def test_malformed_payload_returns_empty(self) -> None:
        assert await _adapter(FakeFetcher("<html>not xml")).fetch() == []

    def test_source_key(self) -> None:
        assert _adapter(FakeFetcher()).source_key == "salesforce"
