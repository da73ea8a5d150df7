import os
import tempfile
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

# Keep test runs from writing into ./logs; must happen before utils.logger is imported.
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="research-test-logs-"))

import pytest
from dotenv import load_dotenv

# Load environment variables from .env file for tests
load_dotenv()


@pytest.fixture
def mock_env(monkeypatch):
    """Fixture to mock environment variables for testing."""
    env_vars = {
        "MODEL_TYPE": "openai",
        "OPENAI_API_KEY": "test-api-key",
        "SEARCH_BACKEND": "static",
        "API_KEYS": "dev-key-1,dev-key-2",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def openai_api_key():
    """Real OpenAI key for integration tests."""
    key = os.getenv("OPENAI_API_KEY")
    if not key:
        pytest.skip("OPENAI_API_KEY environment variable not set")
    return key


PROXY_VARS = ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy")


@pytest.fixture
def local_site(monkeypatch):
    """
    Keep-alive HTTP/1.1 server on 127.0.0.1 serving one long HTML page for any path.

    Yields the base url.
    """
    from fakes import LONG_TEXT

    for var in PROXY_VARS:
        monkeypatch.delenv(var, raising=False)

    body = f"<html><body><main><p>{LONG_TEXT}</p></main></body></html>".encode()

    class PageHandler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"

        def do_GET(self):
            self.send_response(200)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), PageHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
