"""
Live end-to-end research against a real generation provider.

Opt-in: run with `pytest -m integration` and OPENAI_API_KEY set. Uses the
static search backend so only the generation calls leave the machine.
"""

import asyncio

import pytest

from config.config import Config
from models.research import Query
from tools.web.factory import create_research_orchestrator_from_env


@pytest.mark.integration
def test_live_research_round_trip(openai_api_key, monkeypatch):
    monkeypatch.setenv("MODEL_TYPE", "openai")
    monkeypatch.setenv("SEARCH_BACKEND", "static")

    async def scenario():
        async with create_research_orchestrator_from_env(Config()) as orchestrator:
            return await orchestrator.research(Query(text="UN Security Council members"))

    result = asyncio.run(scenario())

    assert result.content
    assert 0.0 <= result.confidence <= 1.0
    assert len({s.url for s in result.sources}) == len(result.sources)
