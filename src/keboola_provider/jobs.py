"""Polling of asynchronous Keboola jobs.

Some writes (table loads, GoodData project provisioning) only enqueue a job
and answer with its id and status URL.  :class:`JobPoller` fetches that URL
until the job reaches a terminal state.  The loop has a fixed interval and
no backoff.  Without a ``timeout`` it never gives up, so a job stuck in
``waiting`` blocks the caller indefinitely.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable
from urllib.parse import urlparse

from pydantic import Field

from keboola_provider.client import KeboolaClient, raise_for_status
from keboola_provider.codec import ApiModel, KBCNumberString, decode_json
from keboola_provider.endpoints import EndpointFamily
from keboola_provider.errors import JobFailedError, JobTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.25
TERMINAL_STATES = ("success", "error")


class JobResults(ApiModel):
    id: KBCNumberString | None = None
    name: str | None = None


class JobStatus(ApiModel):
    id: KBCNumberString | None = None
    url: str | None = None
    status: str = ""
    results: JobResults | None = Field(default=None)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def result_id(self) -> str | None:
        return self.results.id if self.results else None


class JobPoller:
    """Blocks until a job reaches one of the terminal states.

    ``sleep`` and ``clock`` are injectable for tests.
    """

    def __init__(
        self,
        client: KeboolaClient,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    def await_completion(
        self,
        status_url: str,
        family: EndpointFamily = EndpointFamily.SYRUP,
        terminal_states: Iterable[str] = TERMINAL_STATES,
    ) -> JobStatus:
        """Poll *status_url* and return the first terminal :class:`JobStatus`.

        *status_url* is either a path relative to *family* or an absolute
        URL returned by the API, whose path is re-rooted on *family*.
        """
        terminal = frozenset(terminal_states)
        path = self.relative_path(status_url, family)
        started = self._clock()
        iterations = 0

        while True:
            response = raise_for_status(self.client.get(family, path))
            job = decode_json(response.content, JobStatus)
            logger.debug("Job %s status: %s (iteration %d)", job.id, job.status, iterations)

            if job.status in terminal:
                if not job.succeeded:
                    logger.warning("Job %s finished with status '%s'", job.id, job.status)
                return job

            if self.timeout is not None and self._clock() - started >= self.timeout:
                raise JobTimeoutError(job, self.timeout)

            iterations += 1
            self._sleep(self.poll_interval)

    def relative_path(self, status_url: str, family: EndpointFamily) -> str:
        parsed = urlparse(status_url)
        if not parsed.scheme:
            return status_url.lstrip("/")
        base_path = urlparse(self.client.base_urls[family]).path
        path = parsed.path
        if base_path and path.startswith(base_path):
            path = path[len(base_path):]
        path = path.lstrip("/")
        if parsed.query:
            path = f"{path}?{parsed.query}"
        return path


def expect_success(job: JobStatus) -> JobStatus:
    """Raise :class:`JobFailedError` unless *job* finished with ``success``."""
    if not job.succeeded:
        raise JobFailedError(job)
    return job
