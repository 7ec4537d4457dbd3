"""Plain JSON-over-HTTP transport."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from quotegen._constants import USER_AGENT
from quotegen.config import QuoteConfig
from quotegen.exceptions import QuoteDecodeError, QuoteTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str) -> Any:
        ...

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> Any:
        ...


class HttpTransport:
    """JSON transport on top of a shared :class:`aiohttp.ClientSession`."""

    def __init__(self, config: QuoteConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _url(self, endpoint: str) -> str:
        return f"{self._config.base_url.rstrip('/')}{endpoint}"

    async def _request(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
        *,
        strict: bool = True,
    ) -> Any:
        """Send one request and decode the JSON body.

        With ``strict=False`` a 2xx response whose body is not JSON decodes
        to ``None`` instead of raising :class:`QuoteDecodeError`.
        """
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        body: str | None = None
        if payload is not None:
            headers["content-type"] = "application/json; charset=UTF-8"
            body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)

        url = self._url(endpoint)
        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(
                method,
                url,
                data=body,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                charset = resp.charset or "utf-8"
                raw = await resp.read()
        except TimeoutError as exc:
            raise QuoteTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise QuoteTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        if not 200 <= status < 300:
            raise QuoteTransportError(
                f"HTTP {status} from {endpoint}: {raw[:200].decode('utf-8', errors='replace')}",
                status_code=status,
                endpoint=endpoint,
            )

        try:
            text = raw.decode(charset)
            return json.loads(text) if text.strip() else None
        except (UnicodeDecodeError, LookupError, json.JSONDecodeError) as exc:
            if not strict:
                _logger.debug("Ignoring undecodable %d response body from %s", status, endpoint)
                return None
            raise QuoteDecodeError(
                f"Invalid JSON from {endpoint}: {raw[:200]!r}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

    async def get_json(self, endpoint: str) -> Any:
        """GET *endpoint* and return the decoded JSON body."""
        return await self._request("GET", endpoint)

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> Any:
        """POST *payload* as JSON and return the decoded body, if any.

        Any 2xx status counts as success; an unreadable body comes back as ``None``.
        """
        return await self._request("POST", endpoint, payload, strict=False)
