"""Shared HTTP access for source adapters."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from chainmon._constants import DEFAULT_HTTP_TIMEOUT, USER_AGENT
from chainmon.exceptions import SourceFetchError, SourceParseError

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class Fetcher(Protocol):
    """What adapters need from HTTP: a JSON or text body for a GET.

    Adapters depend on this protocol only, so tests hand them canned
    payloads instead of a live session.
    """

    async def get_json(self, url: str, *, headers: Mapping[str, str] | None = None) -> Any: ...

    async def get_text(self, url: str, *, headers: Mapping[str, str] | None = None) -> str: ...


class JsonFetcher:
    """GET requests over one shared :class:`aiohttp.ClientSession`."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        user_agent: str = USER_AGENT,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._http = http_session
        self._user_agent = user_agent
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_text(self, url: str, *, headers: Mapping[str, str] | None = None) -> str:
        request_headers: dict[str, str] = {"user-agent": self._user_agent}
        if headers:
            request_headers.update(headers)

        _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, headers=request_headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status >= 400:
                    raise SourceFetchError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except SourceFetchError:
            raise
        except TimeoutError as exc:
            raise SourceFetchError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise SourceFetchError(f"Request to {url} failed: {exc}", url=url) from exc
        return text

    async def get_json(self, url: str, *, headers: Mapping[str, str] | None = None) -> Any:
        text = await self.get_text(url, headers=headers)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise SourceFetchError(f"Invalid JSON from {url}: {text[:200]}", url=url) from exc


def parse_payload(model: type[M], payload: Any, *, what: str) -> M:
    """Validate *payload* into *model*, mapping failures to :class:`SourceParseError`."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise SourceParseError(f"Unexpected {what} payload: {exc.error_count()} validation error(s)") from exc
