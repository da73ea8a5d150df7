from datetime import date

import pytest

from tools.web.intent import (
    is_academic_query,
    is_crisis_context,
    is_current_events_query,
    mentions_recent_year,
    normalize_query_text,
    query_terms,
)


@pytest.mark.parametrize(
    "text",
    [
        "latest UN resolution on Sudan",
        "What is happening in Gaza",
        "Security Council updates",
        f"climate summit {date.today().year}",
        "Breaking: ceasefire announced",
    ],
)
def test_current_events_detected(text):
    assert is_current_events_query(text)


@pytest.mark.parametrize(
    "text",
    [
        "history of the veto power",
        "UN Charter article 51",
        "1951 Refugee Convention",
        "drafting of the 1948 UDHR",
    ],
)
def test_timeless_queries_not_current_events(text):
    assert not is_current_events_query(text)


def test_academic_intent():
    assert is_academic_query("peer-reviewed study on sanctions")
    assert is_academic_query("Journal analysis of peacekeeping")
    assert not is_academic_query("security council members")


def test_crisis_context():
    assert is_crisis_context("UNSC Crisis Committee")
    assert not is_crisis_context("General Assembly")
    assert not is_crisis_context(None)


def test_normalize_query_text():
    assert normalize_query_text("  UN   Resolutions?? ") == "un resolutions"
    assert normalize_query_text("Refugee law.") == "refugee law"


def test_query_terms():
    assert query_terms("  Security   Council ") == ["security", "council"]
    assert query_terms("") == []


def test_mentions_recent_year_window():
    today = date(2026, 3, 1)
    assert mentions_recent_year("sanctions regime 2026", today)
    assert mentions_recent_year("elections held in 2025", today)
    assert not mentions_recent_year("the 2019 climate summit", today)
    assert not mentions_recent_year("resolution 2334", today)
    assert not mentions_recent_year("no year at all", today)
