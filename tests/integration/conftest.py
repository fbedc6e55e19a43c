"""
Integration fixtures: a live notegraph API (uvicorn + Postgres).

Run with: pytest -m integration
"""

import os
import time
from collections.abc import Generator

import httpx
import pytest

BASE_URL = os.getenv("NOTEGRAPH_API_URL", "http://localhost:8000")


@pytest.fixture(scope="session")
def wait_for_api():
    """
    Block until the API is ready or timeout expires.

    Polls /health with 1s intervals for up to 30s.
    """
    url = f"{BASE_URL}/health"
    timeout = 30
    start = time.time()

    while time.time() - start < timeout:
        try:
            res = httpx.get(url, timeout=1.0)
            if res.status_code == 200:
                return
        except httpx.RequestError:
            time.sleep(1)

    pytest.fail("API unreachable. Is uvicorn running?")


@pytest.fixture(scope="session")
def api_client(wait_for_api) -> Generator[httpx.Client, None, None]:
    """HTTP client with its base URL at /api/v1."""
    with httpx.Client(base_url=f"{BASE_URL}/api/v1", timeout=60.0) as client:
        yield client
