"""Authenticated Mattermost API v4 client.

Two operations are exposed to the pipeline:
  request()   one call, returns the decoded JSON body
  list_all()  walks ?page=N&per_page=M until a short page, returns the concatenation

Every failure surfaces as a TransportError (or MalformedResponseError when a
list endpoint answers with something other than an array), so callers never
confuse "the request failed" with "the server said nothing".
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from mm_history.errors import MalformedResponseError, TransportError
from mm_history.models import ServerConfig
from mm_history.utils.retry import call_with_retry

_log = logging.getLogger(__name__)

API_PREFIX = "/api/v4"
PER_PAGE = 200


def _server_message(response: httpx.Response) -> str:
    # Mattermost error bodies look like {"id": "...", "message": "...", "status_code": 404}
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return response.reason_phrase


class MattermostClient:
    def __init__(self, config: ServerConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        try:
            self._http = httpx.AsyncClient(
                base_url=f"{config.url}{API_PREFIX}",
                headers={"Authorization": f"Bearer {config.token}"},
                timeout=config.timeout,
                transport=transport,
            )
        except httpx.InvalidURL as exc:
            raise TransportError(f"invalid server address {config.url!r}: {exc}") from exc

    @classmethod
    def from_config(cls, config: ServerConfig) -> MattermostClient:
        return cls(config)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> MattermostClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def request(self, method: str, path: str, params: dict[str, Any] | None = None) -> Any:
        _log.debug("%s %s %s", method, path, params or "")
        try:
            response = await call_with_retry(self._http.request, method, path, params=params)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            raise TransportError(
                f"{method} {path} returned HTTP {response.status_code}: {_server_message(response)}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                f"{method} {path} returned a body that is not JSON",
                status_code=response.status_code,
            ) from exc

    async def list_all(self, path: str, params: dict[str, Any] | None = None, *, per_page: int = PER_PAGE) -> list[Any]:
        items: list[Any] = []
        page = 0
        while True:
            batch = await self.request("GET", path, {**(params or {}), "page": page, "per_page": per_page})
            if not isinstance(batch, list):
                raise MalformedResponseError(path, f"page {page} is {type(batch).__name__}, expected array")
            items.extend(batch)
            if len(batch) < per_page:
                break
            page += 1
        _log.debug("%s: %d items over %d page(s)", path, len(items), page + 1)
        return items
