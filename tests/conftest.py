"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules:
- A fresh SQLite database per test
- A scripted in-memory search client
- Zero-delay retry and batching configuration
"""

import pytest
from typing import Callable, Dict, List, Sequence, Union

from src.collector import RetryConfig, SchedulerConfig, SearchResult
from src.database import init_db, reset_engine


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def database(tmp_path, monkeypatch):
    """Point the process at an empty SQLite database for one test."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("POSTGRES_URL", raising=False)
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "test.db"))

    reset_engine()
    init_db()
    yield
    reset_engine()


# ============================================================================
# Search Client
# ============================================================================

def make_results(*urls: str) -> List[SearchResult]:
    """Build an ordered result page from URLs (position 1 first)."""
    return [
        SearchResult(url=url, title=f"Result {i + 1}", snippet="")
        for i, url in enumerate(urls)
    ]


Response = Union[List[SearchResult], Exception, Callable[[int], Union[List[SearchResult], Exception]]]


class FakeSearchClient:
    """
    In-memory search client.

    Each keyword maps to a result page, an exception to raise, or a callable
    receiving the 1-based attempt number for that keyword.
    """

    def __init__(self, responses: Dict[str, Response] = None):
        self.responses = responses or {}
        self.calls: List[str] = []
        self.closed = False

    def attempts(self, keyword: str) -> int:
        return self.calls.count(keyword)

    async def search(self, query: str, num: int = 10) -> List[SearchResult]:
        self.calls.append(query)
        response = self.responses.get(query, [])

        if callable(response):
            response = response(self.attempts(query))
        if isinstance(response, Exception):
            raise response
        return list(response)[:num]

    async def close(self):
        self.closed = True


def fail_then(results: Sequence[SearchResult], failures: int, error: Exception):
    """Response that raises ``error`` for the first ``failures`` attempts."""
    def respond(attempt: int):
        if attempt <= failures:
            return error
        return list(results)
    return respond


# ============================================================================
# Fast Configuration
# ============================================================================

@pytest.fixture
def fast_retry() -> RetryConfig:
    return RetryConfig(max_attempts=3, initial_delay=0, max_delay=0)


@pytest.fixture
def fast_scheduler(fast_retry) -> SchedulerConfig:
    return SchedulerConfig(batch_size=5, batch_delay=0, retry=fast_retry)


# ============================================================================
# Shop Example
# ============================================================================

@pytest.fixture
def shop_responses() -> Dict[str, Response]:
    """
    "buy shoes": shop.example at 1, rival.com at 2
    "running shoes": rival.com at 3, shop.example absent (slots 1-2 carry
    no usable link, so they hold a rank but no domain)
    """
    return {
        "buy shoes": make_results(
            "https://shop.example/buy",
            "https://www.rival.com/shoes",
        ),
        "running shoes": make_results(
            "",
            "",
            "https://rival.com/running",
        ),
    }


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
