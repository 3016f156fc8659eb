"""Pytest configuration shared across the suite."""

import pytest
import respx


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def respx_mock():
    """Provide a respx router that intercepts every outbound httpx call."""
    with respx.mock(assert_all_called=False) as router:
        yield router
