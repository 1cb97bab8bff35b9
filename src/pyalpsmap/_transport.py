"""HTTP transport for the Overpass, elevation and weather services."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyalpsmap.config import MapSyncConfig
from pyalpsmap.exceptions import MapTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def post_form(self, url: str, fields: Mapping[str, str]) -> Any:
        ...

    async def get_json(self, url: str, params: Mapping[str, str]) -> Any:
        ...


class HttpTransport:
    """aiohttp-backed transport that decodes JSON and maps failures to `MapTransportError`."""

    def __init__(
        self,
        config: MapSyncConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        self._headers = {
            "accept": "application/json",
            "user-agent": config.user_agent,
        }

    async def post_form(self, url: str, fields: Mapping[str, str]) -> Any:
        """POST url-encoded *fields* and return the decoded JSON body."""
        _logger.debug("POST %s", url)
        return await self._request("POST", url, data=dict(fields))

    async def get_json(self, url: str, params: Mapping[str, str]) -> Any:
        """GET *url* with query *params* and return the decoded JSON body."""
        _logger.debug("GET %s %s", url, dict(params))
        return await self._request("GET", url, params=dict(params))

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            async with self._http.request(
                method,
                url,
                headers=self._headers,
                timeout=self._timeout,
                **kwargs,
            ) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise MapTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except MapTransportError:
            raise
        except TimeoutError as exc:
            raise MapTransportError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise MapTransportError(f"Request to {url} failed: {exc}", url=url) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise MapTransportError(
                f"Invalid JSON from {url}: {text[:200]}",
                status_code=200,
                url=url,
            ) from exc
