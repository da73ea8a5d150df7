"""In-memory collaborators shared by the research engine tests."""

from models.research import Source
from models.unified_response import NormalizedError, TokenUsage, UnifiedResponse
from api.base_client import BaseAIClient
from tools.web.contracts import SearchResult
from tools.web.fetcher import BaseContentFetcher
from tools.web.providers import BaseProviderAdapter
from tools.web.search_backends import BaseSearchBackend

LONG_TEXT = (
    "The United Nations Security Council has fifteen members, five permanent and ten elected "
    "for two-year terms. The council adopts resolutions on international peace and security. "
) * 3

SYNTHESIS_TEXT = (
    "The Security Council is composed of fifteen members. Five are permanent members with veto "
    "power and ten are elected by the General Assembly for two-year terms [un.org]."
)


class FakeClient(BaseAIClient):
    """
    Fake generation client.

    Responses are consumed in order; the last one repeats. A response may be
    text, a NormalizedError code (prefixed "error:"), or an exception to raise.
    """

    def __init__(self, *responses, provider_name="fake", model_name="fake-model", chunks=None):
        self.provider_name = provider_name
        self.model_name = model_name
        self.responses = list(responses) or [SYNTHESIS_TEXT]
        self.chunks = chunks
        self.prompts = []

    def _next(self):
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def get_completion(self, prompt=None, *, messages=None, **kwargs) -> UnifiedResponse:
        self.prompts.append(prompt)
        response = self._next()
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, str) and response.startswith("error:"):
            code = response.split(":", 1)[1]
            return UnifiedResponse(
                request_id="fake-req",
                text="",
                provider=self.provider_name,
                model=self.model_name,
                latency_ms=1,
                finish_reason="error",
                error=NormalizedError(code=code, message=f"Fake {code} error", provider=self.provider_name),
            )
        return UnifiedResponse(
            request_id="fake-req",
            text=response,
            provider=self.provider_name,
            model=self.model_name,
            latency_ms=1,
            token_usage=TokenUsage(prompt_tokens=10, completion_tokens=20),
            finish_reason="stop",
        )

    def stream_completion(self, prompt, **kwargs):
        if self.chunks is None:
            yield from super().stream_completion(prompt, **kwargs)
            return
        self.prompts.append(prompt)
        for chunk in self.chunks:
            if isinstance(chunk, BaseException):
                raise chunk
            yield chunk


class FakeFetcher(BaseContentFetcher):
    """Returns canned page text; urls in `missing` fetch as None."""

    def __init__(self, pages=None, default=LONG_TEXT, missing=()):
        self.pages = dict(pages or {})
        self.default = default
        self.missing = set(missing)
        self.calls = []

    async def fetch(self, url):
        self.calls.append(url)
        if url in self.missing:
            return None
        return self.pages.get(url, self.default)


class FakeBackend(BaseSearchBackend):
    """Returns the same hits for every query, or raises `error`."""

    name = "fake"

    def __init__(self, hits=(), error=None):
        self.hits = [SearchResult(title=title, url=url) for url, title in hits]
        self.error = error
        self.queries = []

    async def search(self, query, max_results):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.hits[:max_results]


class StubAdapter(BaseProviderAdapter):
    """Adapter returning fixed sources (or raising) without touching a backend."""

    def __init__(self, name, sources=(), error=None, applies=True):
        super().__init__(FakeBackend(), FakeFetcher())
        self.name = name
        self.sources = list(sources)
        self.error = error
        self.applies = applies
        self.calls = 0

    def applies_to(self, query):
        return self.applies

    def build_queries(self, query):
        return []

    def credibility_for(self, domain, query):
        return 0.5

    async def search(self, query, max_results=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.sources)


def make_source(url, relevance=0.5, credibility=0.5, title=None, domain=None):
    return Source(
        url=url,
        title=title or f"Title for {url}",
        domain=domain or url.split("/")[2].removeprefix("www."),
        relevance_score=relevance,
        credibility_score=credibility,
    )
