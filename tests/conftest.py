import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_API_BASE = "https://api.test/api"


@pytest.fixture
def make_client():
    """Build an AsyncClient whose requests are answered by ``handler`` and recorded."""

    def _make(handler):
        seen: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record), base_url=TEST_API_BASE)
        client.requests = seen
        return client

    return _make
