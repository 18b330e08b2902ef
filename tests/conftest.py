"""
pytest fixtures for provider tests.

Resource tests run against the in-memory fake in ``fake_keboola`` through
FastAPI's TestClient; lower-level tests build ``httpx.MockTransport``
clients with scripted responses.
"""

from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

import fake_keboola
from keboola_provider import KeboolaClient, Provider, ProviderConfig
from keboola_provider.jobs import JobPoller

API_KEY = "test-storage-token"


@pytest.fixture
def fake():
    """Fresh fake state for every test."""
    fake_keboola.reset_state()
    yield fake_keboola
    fake_keboola.reset_state()


@pytest.fixture
def fake_http(fake) -> TestClient:
    return TestClient(fake.app)


@pytest.fixture
def config() -> ProviderConfig:
    return ProviderConfig(api_key=API_KEY, poll_interval=0)


@pytest.fixture
def provider(config: ProviderConfig, fake_http: TestClient) -> Provider:
    return Provider(config, http=fake_http)


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], KeboolaClient]:
    """Build a KeboolaClient whose requests are answered by *handler*."""

    def build(handler: Callable[[httpx.Request], httpx.Response]) -> KeboolaClient:
        http = httpx.Client(transport=httpx.MockTransport(handler))
        return KeboolaClient(API_KEY, http=http)

    return build


class RecordingSleep:
    """Stand-in for time.sleep that only records the requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def poller_for(sleep: RecordingSleep) -> Callable[[KeboolaClient], JobPoller]:
    def build(client: KeboolaClient, **kwargs) -> JobPoller:
        return JobPoller(client, sleep=sleep, **kwargs)

    return build
