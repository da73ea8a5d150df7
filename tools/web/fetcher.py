"""Content fetcher: download a candidate page and reduce it to bounded plain text."""

import asyncio
from abc import ABC, abstractmethod

import httpx
from bs4 import BeautifulSoup

from utils.async_utils import LoopBound
from utils.logger import get_logger

logger = get_logger(__name__)

STRIPPED_TAGS = ["script", "style", "nav", "footer", "header", "noscript"]


async def _close_client(client: httpx.AsyncClient) -> None:
    await client.aclose()


def extract_text(html: str, max_chars: int) -> str:
    """Strip non-content markup, collapse whitespace and cap the length."""
    soup = BeautifulSoup(html, "html.parser")
    for node in soup(STRIPPED_TAGS):
        node.decompose()
    root = soup.body or soup
    text = " ".join(root.get_text(" ", strip=True).split())
    return text[:max_chars]


class BaseContentFetcher(ABC):
    """Contract: fetch(url) returns page text, or None when the page is unusable."""

    @abstractmethod
    async def fetch(self, url: str) -> str | None:
        """Return extracted text for url, or None on any failure. Never raises."""

    async def aclose(self) -> None:
        return None


class HttpContentFetcher(BaseContentFetcher):
    """
    Fetch pages over HTTP with a hard timeout, a byte budget and a character cap.

    timeout_s bounds the whole call, including a body that trickles in slowly.
    The body is read only up to max_bytes. Network errors, timeouts, non-2xx
    statuses, non-HTML payloads and parse errors all yield None so the caller
    drops the candidate.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout_s: float = 10.0,
        max_chars: int = 10_000,
        max_bytes: int = 1_000_000,
        user_agent: str = "Mozilla/5.0 (compatible; MUN-Research-Agent/1.0)",
    ):
        self._client = client
        self._owned_clients = LoopBound(
            lambda: httpx.AsyncClient(follow_redirects=True), close=_close_client
        )
        self.timeout_s = timeout_s
        self.max_chars = max_chars
        self.max_bytes = max_bytes
        self.user_agent = user_agent

    def _http(self) -> httpx.AsyncClient:
        return self._client or self._owned_clients.get()

    async def fetch(self, url: str) -> str | None:
        try:
            return await asyncio.wait_for(self._fetch(url), timeout=self.timeout_s)

        except Exception as e:
            logger.warning(
                f"Failed to fetch content from {url}",
                extra={
                    "extra_fields": {
                        "url": url,
                        "error": str(e),
                        "error_type": type(e).__name__,
                        "timeout_s": self.timeout_s,
                    }
                },
            )
            return None

    async def _fetch(self, url: str) -> str | None:
        async with self._http().stream(
            "GET",
            url,
            timeout=self.timeout_s,
            headers={"User-Agent": self.user_agent},
        ) as response:
            response.raise_for_status()

            content_type = response.headers.get("content-type", "")
            if content_type and "html" not in content_type and "text" not in content_type:
                logger.debug(
                    f"Skipping non-text content at {url}",
                    extra={"extra_fields": {"url": url, "content_type": content_type}},
                )
                return None

            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) >= self.max_bytes:
                    logger.debug(
                        f"Truncated body of {url} at {self.max_bytes} bytes",
                        extra={"extra_fields": {"url": url, "max_bytes": self.max_bytes}},
                    )
                    break

            html = bytes(body[: self.max_bytes]).decode(
                response.charset_encoding or "utf-8", errors="replace"
            )

        return extract_text(html, self.max_chars)

    async def aclose(self) -> None:
        await self._owned_clients.aclose()
