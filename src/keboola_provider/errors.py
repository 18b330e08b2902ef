"""Error kinds surfaced to the host.

Every failure of a resource operation is raised as a subclass of
:class:`KeboolaError`.  A ``404`` on Read or Delete is *not* an error; the
synchronizers reclassify it as "resource absent" before anything is raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from keboola_provider.jobs import JobStatus


class KeboolaError(Exception):
    """Base class for every error raised by the provider."""


class TransportError(KeboolaError):
    """DNS, connection or timeout failure before an HTTP status was received."""

    def __init__(self, method: str, url: str, cause: Exception) -> None:
        self.method = method
        self.url = url
        self.cause = cause
        super().__init__(f"{method} {url} failed: {cause}")


class HTTPStatusError(KeboolaError):
    """A non-2xx response from one of the Keboola APIs."""

    def __init__(
        self,
        status_code: int,
        method: str,
        url: str,
        message: str,
        body: Any = None,
    ) -> None:
        self.status_code = status_code
        self.method = method
        self.url = url
        self.message = message
        self.body = body
        super().__init__(f"{status_code} {method} {url}: {message}")


class DecodeError(KeboolaError, ValueError):
    """Malformed JSON or a response that does not fit the expected shape.

    Also a :class:`ValueError` so pydantic validators may raise it directly.
    """


class ValidationError(KeboolaError, ValueError):
    """A client-side constraint on a resource attribute was violated."""


class PollError(KeboolaError):
    """A job did not reach a successful terminal state."""

    def __init__(self, job: "JobStatus", message: str) -> None:
        self.job = job
        super().__init__(message)


class JobFailedError(PollError):
    """The job terminated with status ``error``."""

    def __init__(self, job: "JobStatus") -> None:
        super().__init__(job, f"Job {job.id} finished with status '{job.status}'")


class JobTimeoutError(PollError):
    """The configured job timeout elapsed before a terminal status."""

    def __init__(self, job: "JobStatus", timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            job,
            f"Job {job.id} still '{job.status}' after {timeout}s",
        )


class UnknownResourceError(KeboolaError, KeyError):
    """The host asked for a resource type the provider does not register."""
