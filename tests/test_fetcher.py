import asyncio
import time

import httpx

from fakes import LONG_TEXT
from tools.web.fetcher import HttpContentFetcher, extract_text

PAGE = """
<html>
  <head><title>t</title><style>body { color: red; }</style></head>
  <body>
    <header>Site header</header>
    <nav>Home | About</nav>
    <script>var tracking = 1;</script>
    <main><h1>Security   Council</h1><p>Fifteen
    members.</p></main>
    <footer>Copyright</footer>
  </body>
</html>
"""


def test_extract_text_strips_boilerplate_and_collapses_whitespace():
    text = extract_text(PAGE, max_chars=10_000)
    assert text == "Security Council Fifteen members."


def test_extract_text_caps_length():
    assert len(extract_text("<p>" + "x" * 500 + "</p>", max_chars=100)) == 100


def _fetch(handler, url, **kwargs):
    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await HttpContentFetcher(client, **kwargs).fetch(url)

    return asyncio.run(scenario())


def test_fetch_returns_extracted_text():
    def handler(request):
        assert "MUN-Research-Agent" in request.headers["user-agent"]
        return httpx.Response(200, text=PAGE, headers={"content-type": "text/html; charset=utf-8"})

    assert _fetch(handler, "https://un.org/page") == "Security Council Fifteen members."


def test_fetch_http_error_returns_none():
    assert _fetch(lambda request: httpx.Response(404, text="missing"), "https://un.org/404") is None


def test_fetch_non_text_content_returns_none():
    def handler(request):
        return httpx.Response(200, content=b"%PDF-1.7", headers={"content-type": "application/pdf"})

    assert _fetch(handler, "https://un.org/doc.pdf") is None


def test_fetch_network_error_returns_none():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert _fetch(handler, "https://unreachable.example") is None


def test_fetch_respects_max_chars():
    def handler(request):
        return httpx.Response(200, text="<p>" + "word " * 1000 + "</p>", headers={"content-type": "text/html"})

    assert len(_fetch(handler, "https://long.example", max_chars=50)) == 50


class TrickleStream(httpx.AsyncByteStream):
    """Response body delivered in `count` chunks with a pause before each."""

    def __init__(self, chunk: bytes, count: int, delay: float = 0.0):
        self.chunk = chunk
        self.count = count
        self.delay = delay
        self.sent = 0

    async def __aiter__(self):
        for _ in range(self.count):
            await asyncio.sleep(self.delay)
            self.sent += 1
            yield self.chunk


def test_fetch_slow_body_hits_overall_deadline():
    stream = TrickleStream(b"<p>x</p>", count=40, delay=0.05)

    def handler(request):
        return httpx.Response(200, headers={"content-type": "text/html"}, stream=stream)

    started = time.monotonic()
    result = _fetch(handler, "https://slow.example", timeout_s=0.3)
    elapsed = time.monotonic() - started

    assert result is None
    assert elapsed < 1.5
    assert stream.sent < 40


def test_fetch_stops_reading_at_byte_budget():
    stream = TrickleStream(b"word " * 200, count=1000)

    def handler(request):
        return httpx.Response(200, headers={"content-type": "text/html"}, stream=stream)

    text = _fetch(handler, "https://huge.example", max_bytes=4096)

    assert text.startswith("word word")
    assert len(text) <= 4096
    assert stream.sent <= 5


def test_owned_client_works_across_event_loops(local_site):
    fetcher = HttpContentFetcher(timeout_s=5.0)
    expected = " ".join(LONG_TEXT.split())

    first = asyncio.run(fetcher.fetch(local_site + "/members"))
    second = asyncio.run(fetcher.fetch(local_site + "/members"))

    assert first == expected
    assert second == expected
