"""Tests for aggregation: concurrency join, deduplication, ranking and truncation."""

import asyncio

import pytest

from fakes import StubAdapter, make_source
from models.research import Query
from tools.web.aggregator import Aggregator, canonical_url, dedupe_sources, rank_sources


@pytest.mark.parametrize(
    "a, b",
    [
        ("https://www.un.org/en/", "https://un.org/en"),
        ("HTTPS://UN.ORG/en#section", "https://un.org/en"),
    ],
)
def test_canonical_url_equivalences(a, b):
    assert canonical_url(a) == canonical_url(b)


def test_canonical_url_keeps_query_string():
    assert canonical_url("https://un.org/doc?id=1") != canonical_url("https://un.org/doc?id=2")


def test_dedupe_first_occurrence_wins():
    first = make_source("https://www.un.org/page", relevance=0.2)
    second = make_source("https://un.org/page/", relevance=0.9)
    assert dedupe_sources([first, second]) == [first]


def test_rank_is_stable_for_ties():
    a = make_source("https://a.org", relevance=0.5, credibility=0.8)
    b = make_source("https://b.org", relevance=0.8, credibility=0.5)
    c = make_source("https://c.org", relevance=0.9, credibility=0.9)
    assert rank_sources([a, b, c]) == [c, a, b]


def test_fifteen_candidates_truncated_to_top_ten():
    sources = [make_source(f"https://s{i}.org", relevance=i / 15, credibility=0.9) for i in range(15)]
    ranked = rank_sources(sources, top_k=10)
    assert len(ranked) == 10
    assert [s.url for s in ranked] == [f"https://s{i}.org" for i in range(14, 4, -1)]


def test_aggregate_merges_dedupes_and_ranks():
    trusted = StubAdapter(
        "trusted",
        [make_source("https://un.org/a", 0.6, 0.95), make_source("https://un.org/b", 0.2, 0.95)],
    )
    web = StubAdapter(
        "web",
        [make_source("https://www.un.org/a/", 0.9, 0.5), make_source("https://example.com/x", 0.9, 0.5)],
    )
    aggregator = Aggregator([trusted, web], top_k=10)

    sources = asyncio.run(aggregator.aggregate(Query(text="security council")))

    urls = [s.url for s in sources]
    assert urls == ["https://un.org/a", "https://example.com/x", "https://un.org/b"]
    assert len({canonical_url(u) for u in urls}) == len(urls)
    keys = [s.rank_key for s in sources]
    assert keys == sorted(keys, reverse=True)


def test_failing_adapter_contributes_nothing():
    good = StubAdapter("trusted", [make_source("https://un.org/a", 0.6, 0.95)])
    bad = StubAdapter("web", error=RuntimeError("boom"))
    sources = asyncio.run(Aggregator([good, bad]).aggregate(Query(text="x")))
    assert [s.url for s in sources] == ["https://un.org/a"]


def test_all_adapters_failing_yields_empty():
    adapters = [StubAdapter(n, error=RuntimeError(n)) for n in ("trusted", "news", "web")]
    assert asyncio.run(Aggregator(adapters).aggregate(Query(text="x"))) == []


def test_only_applicable_adapters_run():
    runs = StubAdapter("web", [make_source("https://a.org")])
    skipped = StubAdapter("news", [make_source("https://b.org")], applies=False)
    aggregator = Aggregator([runs, skipped])

    assert aggregator.select_adapters(Query(text="x")) == [runs]
    asyncio.run(aggregator.aggregate(Query(text="x")))
    assert runs.calls == 1
    assert skipped.calls == 0
