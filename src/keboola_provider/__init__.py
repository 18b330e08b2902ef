"""
Keboola provider - declarative resource management for Keboola Connection.

Usage:
    from keboola_provider import Provider, ProviderConfig

    provider = Provider(ProviderConfig.from_env())
    tokens = provider.resource("keboola_access_token")
"""

from keboola_provider.client import KeboolaClient
from keboola_provider.config import ProviderConfig
from keboola_provider.endpoints import EndpointFamily
from keboola_provider.errors import (
    DecodeError,
    HTTPStatusError,
    JobFailedError,
    JobTimeoutError,
    KeboolaError,
    PollError,
    TransportError,
    UnknownResourceError,
    ValidationError,
)
from keboola_provider.jobs import JobPoller, JobStatus
from keboola_provider.provider import Provider

__version__ = "0.1.0"

__all__ = [
    "DecodeError",
    "EndpointFamily",
    "HTTPStatusError",
    "JobFailedError",
    "JobPoller",
    "JobStatus",
    "JobTimeoutError",
    "KeboolaClient",
    "KeboolaError",
    "PollError",
    "Provider",
    "ProviderConfig",
    "TransportError",
    "UnknownResourceError",
    "ValidationError",
]
