"""Authenticated HTTP client for the Keboola APIs.

Wraps :mod:`httpx`.  Every call names an :class:`EndpointFamily`; the
absolute URL is the family's base URL followed by the caller's path, with
no normalization (callers escape their own path segments).  The client
attaches the ``X-StorageApi-Token`` header for families that take it and
otherwise hands back the raw :class:`httpx.Response`.  Statuses are
interpreted by the caller, see :func:`raise_for_status`.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from keboola_provider.codec import Payload
from keboola_provider.endpoints import DEFAULT_BASE_URLS, TOKEN_HEADER, EndpointFamily, sends_token
from keboola_provider.errors import HTTPStatusError, TransportError

logger = logging.getLogger(__name__)


class KeboolaClient:
    """Issues requests against the Keboola endpoint families.

    Parameters
    ----------
    api_key:
        Storage API token.  Read-only for the lifetime of the client.
    base_urls:
        Per-family overrides of :data:`DEFAULT_BASE_URLS` (e.g. a local fake).
    timeout:
        Per-request timeout in seconds.
    http:
        An existing :class:`httpx.Client` to send through.  When ``None`` a
        fresh client (and connection) is opened for every request.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_urls: Mapping[EndpointFamily, str] | None = None,
        timeout: float = 60.0,
        http: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self.base_urls: dict[EndpointFamily, str] = {**DEFAULT_BASE_URLS, **(base_urls or {})}
        self.timeout = timeout
        self._http = http

    def url_for(self, family: EndpointFamily, path: str) -> str:
        return self.base_urls[family] + path

    def headers_for(self, family: EndpointFamily, payload: Payload | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if sends_token(family):
            headers[TOKEN_HEADER] = self._api_key
        if payload is not None:
            headers["Content-Type"] = payload.content_type
        return headers

    def request(
        self,
        method: str,
        family: EndpointFamily,
        path: str,
        payload: Payload | None = None,
    ) -> httpx.Response:
        url = self.url_for(family, path)
        content = payload.content if payload is not None else None
        logger.debug("%s: %s (%d bytes)", method, url, len(content or b""))
        try:
            if self._http is not None:
                return self._send(self._http, method, url, family, payload, content)
            with httpx.Client(timeout=self.timeout) as http:
                return self._send(http, method, url, family, payload, content)
        except httpx.TransportError as exc:
            raise TransportError(method, url, exc) from exc

    def _send(
        self,
        http: httpx.Client,
        method: str,
        url: str,
        family: EndpointFamily,
        payload: Payload | None,
        content: bytes | None,
    ) -> httpx.Response:
        response = http.request(
            method,
            url,
            content=content,
            headers=self.headers_for(family, payload),
            timeout=self.timeout,
        )
        # Drain the body so it outlives a per-request client.
        response.read()
        return response

    def get(self, family: EndpointFamily, path: str) -> httpx.Response:
        """Perform a GET request."""
        return self.request("GET", family, path)

    def post(self, family: EndpointFamily, path: str, payload: Payload | None = None) -> httpx.Response:
        """Perform a POST request."""
        return self.request("POST", family, path, payload or Payload.empty())

    def put(self, family: EndpointFamily, path: str, payload: Payload | None = None) -> httpx.Response:
        """Perform a PUT request."""
        return self.request("PUT", family, path, payload or Payload.empty())

    def delete(self, family: EndpointFamily, path: str) -> httpx.Response:
        """Perform a DELETE request."""
        return self.request("DELETE", family, path)


def is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code <= 299


def raise_for_status(response: httpx.Response) -> httpx.Response:
    """Raise :class:`HTTPStatusError` for any non-2xx *response*."""
    if is_success(response):
        return response
    body, message = _error_details(response)
    raise HTTPStatusError(
        response.status_code,
        response.request.method,
        str(response.request.url),
        message,
        body,
    )


def _error_details(response: httpx.Response) -> tuple[Any, str]:
    try:
        body = response.json()
    except ValueError:
        text = response.text
        return text, text or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error", body.get("message"))
        if isinstance(error, dict):
            error = error.get("message")
        if error:
            return body, str(error)
    return body, response.text
