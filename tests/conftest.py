"""
Pytest configuration and fixtures for har_perf tests.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from har_perf.har import HarEntry

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def make_entry(
    url: str,
    time: float,
    body_size: int | None = None,
    headers_size: int | None = None,
    content_size: int | None = None,
) -> HarEntry:
    """Build an entry the way it appears in a HAR file."""
    response: dict[str, Any] = {}
    if body_size is not None:
        response["bodySize"] = body_size
    if headers_size is not None:
        response["headersSize"] = headers_size
    if content_size is not None:
        response["content"] = {"size": content_size}
    return HarEntry.model_validate({"time": time, "request": {"url": url}, "response": response})


@pytest.fixture
def entry_factory() -> Callable[..., HarEntry]:
    """Provide the HAR entry builder."""
    return make_entry


@pytest.fixture
def sample_har_path() -> Path:
    """Four-request capture across two hosts."""
    return FIXTURES_DIR / "sample.har"


@pytest.fixture
def grouped_har_path() -> Path:
    """Four requests split evenly between cdn.example.com and api.example.com."""
    return FIXTURES_DIR / "grouped.har"


@pytest.fixture
def three_entries() -> list[HarEntry]:
    """Entries with unique times and byte counts."""
    return [
        make_entry("https://a", 200, body_size=100, headers_size=10, content_size=90),
        make_entry("https://b", 50, body_size=500, headers_size=5, content_size=250),
        make_entry("https://c", 100, body_size=-1, headers_size=7, content_size=300),
    ]


@pytest.fixture
def grouped_entries() -> list[HarEntry]:
    """Two cdn.example.com and two api.example.com requests."""
    return [
        make_entry("https://cdn.example.com/a.js", 300, body_size=200, headers_size=40),
        make_entry("https://api.example.com/users", 200, body_size=150, headers_size=30),
        make_entry("https://cdn.example.com/b.css", 50, body_size=100, headers_size=50),
        make_entry("https://api.example.com/orders", 100, body_size=120, headers_size=30),
    ]
