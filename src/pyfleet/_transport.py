"""HTTP transport for the fleet backend."""

from __future__ import annotations

import contextlib
import json
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any, Protocol

import aiohttp

from pyfleet._constants import USER_AGENT
from pyfleet._redact import redact_for_log
from pyfleet.config import FleetConfig
from pyfleet.exceptions import NetworkError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by ingestion modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str, params: Mapping[str, str] | None = None) -> Any:
        ...

    def open_stream(self, endpoint: str) -> contextlib.AbstractAsyncContextManager[AsyncIterator[str]]:
        ...


class HttpTransport:
    """aiohttp-backed transport for JSON endpoints and the SSE stream."""

    def __init__(self, config: FleetConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _headers(self, accept: str) -> dict[str, str]:
        headers: dict[str, str] = {"accept": accept, "user-agent": USER_AGENT}
        headers.update(self._config.headers)
        return headers

    async def get_json(self, endpoint: str, params: Mapping[str, str] | None = None) -> Any:
        """GET *endpoint* and decode the JSON body.

        Raises
        ------
        NetworkError
            On connection failure, timeout, a non-2xx status, or a body
            that is not JSON.
        """
        url = f"{self._config.base_url}{endpoint}"
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("GET %s params=%s", url, dict(params or {}))

        try:
            async with self._http.get(
                url,
                params=dict(params or {}),
                headers=self._headers("application/json"),
                timeout=timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise NetworkError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except NetworkError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise NetworkError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise NetworkError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("Response %s: %s", endpoint, redact_for_log(body))
        return body

    @contextlib.asynccontextmanager
    async def open_stream(self, endpoint: str) -> AsyncIterator[AsyncIterator[str]]:
        """Open a long-lived text/event-stream connection.

        Yields an async iterator over decoded lines (without line endings).
        The connection is released when the context exits.

        Raises
        ------
        NetworkError
            If the connection cannot be established or the server answers
            with a non-2xx status.
        """
        url = f"{self._config.base_url}{endpoint}"
        # No total/read timeout: the stream is expected to stay open.
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self._config.request_timeout, sock_read=None)

        _logger.debug("STREAM %s", url)

        try:
            resp = await self._http.get(url, headers=self._headers("text/event-stream"), timeout=timeout)
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise NetworkError(f"Stream {endpoint} failed to open: {exc}", endpoint=endpoint) from exc

        try:
            if not 200 <= resp.status < 300:
                raise NetworkError(
                    f"HTTP {resp.status} from stream {endpoint}",
                    status_code=resp.status,
                    endpoint=endpoint,
                )
            yield _iter_lines(resp, endpoint)
        finally:
            resp.release()
            _logger.debug("STREAM %s closed", url)


async def _iter_lines(resp: aiohttp.ClientResponse, endpoint: str) -> AsyncIterator[str]:
    try:
        async for raw in resp.content:
            yield raw.decode("utf-8", errors="replace").rstrip("\r\n")
    except aiohttp.ClientError as exc:
        raise NetworkError(f"Stream {endpoint} interrupted: {exc}", endpoint=endpoint) from exc
