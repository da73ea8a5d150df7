"""Tests for the provider adapters."""

import asyncio

import pytest

from fakes import FakeBackend, FakeFetcher, LONG_TEXT
from models.research import Query
from tools.web.aggregator import Aggregator
from tools.web.providers import AcademicAdapter, NewsAdapter, TrustedSourceAdapter, WebAdapter
from tools.web.search_backends import StaticSearchBackend


def test_trusted_adapter_un_security_council_scenario():
    adapter = TrustedSourceAdapter(StaticSearchBackend(), FakeFetcher())
    sources = asyncio.run(adapter.search(Query(text="UN Security Council members")))

    assert sources
    assert all(s.domain == "un.org" for s in sources)
    assert all(s.credibility_score >= 0.85 for s in sources)
    assert all(0.0 <= s.relevance_score <= 1.0 for s in sources)


def test_un_scenario_through_all_adapters_ranks_trusted_first():
    backend = StaticSearchBackend()
    fetcher = FakeFetcher()
    adapters = [
        TrustedSourceAdapter(backend, fetcher),
        NewsAdapter(backend, fetcher),
        WebAdapter(backend, fetcher),
        AcademicAdapter(backend, fetcher),
    ]
    sources = asyncio.run(Aggregator(adapters).aggregate(Query(text="UN Security Council members")))

    assert sources[0].domain == "un.org"
    assert sources[0].credibility_score >= 0.85
    assert len({s.url for s in sources}) == len(sources)


def test_trusted_queries_are_site_scoped_and_include_hints():
    adapter = TrustedSourceAdapter(FakeBackend(), FakeFetcher())
    queries = adapter.build_queries(Query(text="refugee law", requested_source_hints={"icrc.org"}))
    assert queries == [
        "refugee law site:un.org",
        "refugee law site:undocs.org",
        "refugee law site:unhcr.org",
        "refugee law site:icrc.org",
    ]


def test_trusted_accepts_hinted_domain():
    backend = FakeBackend(hits=[("https://www.amnesty.org/report", "Report"), ("https://blog.example/x", "Blog")])
    adapter = TrustedSourceAdapter(backend, FakeFetcher(), search_domains=("un.org",))
    sources = asyncio.run(adapter.search(Query(text="report", requested_source_hints={"amnesty.org"})))

    assert [s.domain for s in sources] == ["amnesty.org"]
    assert sources[0].credibility_score == pytest.approx(0.7)


def test_news_adapter_only_for_current_events():
    adapter = NewsAdapter(FakeBackend(), FakeFetcher())
    assert adapter.applies_to(Query(text="latest Sudan ceasefire"))
    assert not adapter.applies_to(Query(text="UN Charter article 51"))
    assert adapter.build_queries(Query(text="Sudan")) == ["Sudan latest news"]


def test_news_adapter_credibility_tiers():
    backend = FakeBackend(
        hits=[
            ("https://www.reuters.com/a", "Sudan news"),
            ("https://edition.cnn.com/b", "Sudan news"),
            ("https://smallpaper.example/c", "Sudan news"),
        ]
    )
    sources = asyncio.run(NewsAdapter(backend, FakeFetcher()).search(Query(text="latest Sudan news")))
    assert [s.credibility_score for s in sources] == pytest.approx([0.85, 0.70, 0.5])


def test_web_adapter_excludes_social_media():
    queries = WebAdapter(FakeBackend(), FakeFetcher()).build_queries(Query(text="climate finance"))
    assert queries == ["climate finance -site:facebook.com -site:twitter.com"]


def test_academic_adapter_filters_to_academic_domains():
    backend = FakeBackend(
        hits=[
            ("https://www.jstor.org/stable/1", "Sanctions study"),
            ("https://example.com/post", "Sanctions study"),
            ("https://econ.mit.edu/paper", "Sanctions study"),
        ]
    )
    adapter = AcademicAdapter(backend, FakeFetcher())
    query = Query(text="study of sanctions")

    assert adapter.applies_to(query)
    assert adapter.build_queries(query) == ["study of sanctions research academic"]
    sources = asyncio.run(adapter.search(query))
    assert [s.domain for s in sources] == ["jstor.org", "econ.mit.edu"]
    assert all(s.credibility_score == 0.85 for s in sources)


def test_candidates_with_missing_or_short_content_dropped():
    backend = FakeBackend(
        hits=[
            ("https://a.example/ok", "ok"),
            ("https://b.example/missing", "missing"),
            ("https://c.example/short", "short"),
        ]
    )
    fetcher = FakeFetcher(pages={"https://c.example/short": "too short"}, missing={"https://b.example/missing"})
    sources = asyncio.run(WebAdapter(backend, fetcher).search(Query(text="anything")))
    assert [s.url for s in sources] == ["https://a.example/ok"]


def test_backend_failure_yields_empty_list():
    adapter = WebAdapter(FakeBackend(error=RuntimeError("search down")), FakeFetcher())
    assert asyncio.run(adapter.search(Query(text="x"))) == []


def test_fetcher_exception_drops_only_that_candidate():
    class ExplodingFetcher(FakeFetcher):
        async def fetch(self, url):
            if "bad" in url:
                raise RuntimeError("parser crash")
            return LONG_TEXT

    backend = FakeBackend(hits=[("https://good.example/1", "good"), ("https://bad.example/2", "bad")])
    sources = asyncio.run(WebAdapter(backend, ExplodingFetcher()).search(Query(text="x")))
    assert [s.url for s in sources] == ["https://good.example/1"]


def test_duplicate_hits_within_adapter_fetched_once():
    backend = FakeBackend(hits=[("https://un.org/a", "A")])
    fetcher = FakeFetcher()
    adapter = TrustedSourceAdapter(backend, fetcher)
    sources = asyncio.run(adapter.search(Query(text="a")))

    assert len(sources) == 1
    assert fetcher.calls == ["https://un.org/a"]
