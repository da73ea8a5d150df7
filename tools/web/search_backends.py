"""
Search backends: the raw "query in, (url, title) hits out" services that
provider adapters transform queries for.

Backends may raise on network or payload errors; adapters are responsible for
containing those failures.
"""

import asyncio
import re
from abc import ABC, abstractmethod
from urllib.parse import parse_qs, unquote, urlsplit

import httpx
from bs4 import BeautifulSoup

from utils.async_utils import LoopBound
from utils.logger import get_logger

from .classification import matches_domain
from .contracts import SearchResult

logger = get_logger(__name__)

DUCKDUCKGO_HTML_URL = "https://duckduckgo.com/html/"
DEFAULT_SEARCH_TIMEOUT_S = 8.0


async def _close_client(client: httpx.AsyncClient) -> None:
    await client.aclose()


SITE_OPERATOR = re.compile(r"(?<![\w-])site:(\S+)")
EXCLUDE_SITE_OPERATOR = re.compile(r"-site:(\S+)")


def split_site_operators(query: str) -> tuple[str, list[str], list[str]]:
    """
    Separate search operators from the plain query text.

    Returns:
        (plain_text, included_sites, excluded_sites)
    """
    excluded = EXCLUDE_SITE_OPERATOR.findall(query)
    without_excluded = EXCLUDE_SITE_OPERATOR.sub(" ", query)
    included = SITE_OPERATOR.findall(without_excluded)
    plain = SITE_OPERATOR.sub(" ", without_excluded)
    return " ".join(plain.split()), included, excluded


class BaseSearchBackend(ABC):
    """Abstract search backend."""

    name: str = "search"

    @abstractmethod
    async def search(self, query: str, max_results: int) -> list[SearchResult]:
        """Return up to max_results hits for query."""

    async def aclose(self) -> None:
        return None


class TavilySearchBackend(BaseSearchBackend):
    """Tavily search through the tavily-python async client."""

    name = "tavily"

    def __init__(
        self,
        api_key: str,
        client=None,
        *,
        timeout_s: float = DEFAULT_SEARCH_TIMEOUT_S,
        search_depth: str = "basic",
    ):
        """
        Args:
            api_key: Tavily API key
            client: Object exposing Tavily's async search(); built per event loop when omitted
            timeout_s: Deadline for one search call
            search_depth: "basic" (faster) or "advanced" (deeper)
        """
        if not api_key:
            raise ValueError("TAVILY_API_KEY not found in environment")

        # Lazy import so tests with an injected client don't need the SDK
        if client is None:
            try:
                from tavily import AsyncTavilyClient
            except ModuleNotFoundError as e:
                raise ModuleNotFoundError(
                    "Dependency 'tavily' is not installed. "
                    "Install it to use the tavily backend: pip install tavily-python"
                ) from e
            self._sdk_clients = LoopBound(lambda: AsyncTavilyClient(api_key=api_key))
        else:
            self._sdk_clients = None

        self.api_key = api_key
        self._client = client
        self.timeout_s = timeout_s
        self.search_depth = search_depth
        logger.info("Tavily search backend initialized")

    def _sdk(self):
        return self._client or self._sdk_clients.get()

    async def search(self, query: str, max_results: int) -> list[SearchResult]:
        plain, included, excluded = split_site_operators(query)
        options = {
            "query": plain or query,
            "search_depth": self.search_depth,
            "max_results": max(1, min(int(max_results), 20)),
            "include_answer": False,
            "include_raw_content": False,
        }
        if included:
            options["include_domains"] = included
        if excluded:
            options["exclude_domains"] = excluded

        response = await asyncio.wait_for(self._sdk().search(**options), timeout=self.timeout_s)

        results = []
        for item in (response.get("results") or [])[:max_results]:
            url = str(item.get("url") or "").strip()
            if not url:
                continue
            title = str(item.get("title") or "").strip() or url
            results.append(SearchResult(title=title, url=url, snippet=str(item.get("content") or "")))

        logger.debug(
            "Tavily search completed",
            extra={"extra_fields": {"query": query, "result_count": len(results)}},
        )
        return results

    async def aclose(self) -> None:
        if self._sdk_clients is not None:
            await self._sdk_clients.aclose()


class DuckDuckGoSearchBackend(BaseSearchBackend):
    """Scrape DuckDuckGo HTML results; needs no API key."""

    name = "duckduckgo"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout_s: float = DEFAULT_SEARCH_TIMEOUT_S,
        user_agent: str = "Mozilla/5.0 (compatible; MUN-Research-Agent/1.0)",
    ):
        self._client = client
        self._owned_clients = LoopBound(
            lambda: httpx.AsyncClient(follow_redirects=True), close=_close_client
        )
        self.timeout_s = timeout_s
        self.user_agent = user_agent

    @staticmethod
    def _resolve_href(href: str) -> str:
        parts = urlsplit(href)
        if parts.netloc.endswith("duckduckgo.com") and parts.path.startswith("/l/"):
            target = parse_qs(parts.query).get("uddg", [None])[0]
            if target:
                return unquote(target)
        if href.startswith("//"):
            return "https:" + href
        return href

    async def search(self, query: str, max_results: int) -> list[SearchResult]:
        if not query.strip():
            return []

        http = self._client or self._owned_clients.get()
        response = await asyncio.wait_for(
            http.get(
                DUCKDUCKGO_HTML_URL,
                params={"q": query, "kl": "us-en"},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout_s,
            ),
            timeout=self.timeout_s,
        )
        response.raise_for_status()

        soup = BeautifulSoup(response.text, "html.parser")
        results: list[SearchResult] = []
        for node in soup.select(".result"):
            anchor = node.select_one("a.result__a")
            if anchor is None or not anchor.get("href"):
                continue
            snippet_node = node.select_one(".result__snippet")
            results.append(
                SearchResult(
                    title=anchor.get_text(" ", strip=True),
                    url=self._resolve_href(anchor["href"]),
                    snippet=snippet_node.get_text(" ", strip=True) if snippet_node else "",
                )
            )
            if len(results) >= max_results:
                break
        return results

    async def aclose(self) -> None:
        await self._owned_clients.aclose()


class StaticSearchBackend(BaseSearchBackend):
    """
    Offline backend returning canned MUN reference pages.

    Topic keywords select known UN/treaty pages; the list is padded with generic
    example.com hits. site: and -site: operators are honoured so adapter query
    transformations behave as they would against a real engine.
    """

    name = "static"

    TOPIC_RESULTS = (
        (
            ("security council", "unsc"),
            (
                ("https://www.un.org/securitycouncil/content/current-members", "UN Security Council Current Members"),
                ("https://www.un.org/securitycouncil/content/resolutions", "UN Security Council Resolutions"),
            ),
        ),
        (
            ("human rights",),
            (
                ("https://www.ohchr.org/en/professionalinterest/pages/ccpr.aspx", "International Covenant on Civil and Political Rights"),
                ("https://www.un.org/en/about-us/universal-declaration-of-human-rights", "Universal Declaration of Human Rights"),
            ),
        ),
        (
            ("climate", "environment"),
            (
                ("https://unfccc.int/process-and-meetings/the-paris-agreement", "The Paris Agreement - UNFCCC"),
                ("https://www.un.org/en/climatechange/climate-solutions", "UN Climate Action - Climate Solutions"),
            ),
        ),
        (
            ("refugee",),
            (
                ("https://www.unhcr.org/about-unhcr/who-we-are/1951-refugee-convention", "The 1951 Refugee Convention - UNHCR"),
            ),
        ),
    )
    PAD_TO = 5

    async def search(self, query: str, max_results: int) -> list[SearchResult]:
        plain, included, excluded = split_site_operators(query)
        plain_lower = plain.lower()

        hits: list[SearchResult] = []
        for keywords, pages in self.TOPIC_RESULTS:
            if any(keyword in plain_lower for keyword in keywords):
                hits.extend(SearchResult(title=title, url=url) for url, title in pages)

        if included:
            hits = [h for h in hits if any(matches_domain(h.domain, site) for site in included)]
        if excluded:
            hits = [h for h in hits if not any(matches_domain(h.domain, site) for site in excluded)]

        if not included:
            index = 1
            while len(hits) < min(max_results, self.PAD_TO):
                hits.append(
                    SearchResult(
                        title=f"Related Information about {plain}",
                        url=f"https://example.com/search-result-{index}",
                    )
                )
                index += 1

        logger.debug(
            "Static search completed",
            extra={"extra_fields": {"query": query, "result_count": len(hits[:max_results])}},
        )
        return hits[:max_results]
