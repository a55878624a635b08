"""Backends the client side uses to obtain suggestions and enrichments."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from ..ai.orchestration import CompletionOrchestrator, InspirationOrchestrator
from ..errors import BackendError, RequestAborted

__all__ = [
    "SuggestionBackend",
    "HttpSuggestionBackend",
    "LocalSuggestionBackend",
    "ABORTED_STATUS",
]

LOGGER = logging.getLogger(__name__)

# Non-standard "client closed request" status used by the API for aborted requests.
ABORTED_STATUS = 499


@runtime_checkable
class SuggestionBackend(Protocol):
    async def suggest(self, content: str, inspiration: str | None = None) -> str:
        ...

    async def enrich(self, inspiration: str) -> str:
        ...


class HttpSuggestionBackend:
    """Talks to the LyricPad HTTP API with an ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 90.0,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)
        self._owns_client = client is None

    async def suggest(self, content: str, inspiration: str | None = None) -> str:
        body: dict[str, Any] = {"content": content}
        if inspiration:
            body["inspiration"] = inspiration
        return await self._post("/api/suggest", body)

    async def enrich(self, inspiration: str) -> str:
        return await self._post("/api/inspiration", {"inspiration": inspiration})

    async def _post(self, path: str, body: dict[str, Any]) -> str:
        try:
            response = await self._client.post(path, json=body)
        except httpx.HTTPError as exc:
            raise BackendError(message=f"Request to {path} failed: {exc}") from exc

        if response.status_code == ABORTED_STATUS:
            raise RequestAborted()
        payload = _json_or_empty(response)
        if response.status_code != 200:
            raise BackendError(
                message=str(payload.get("error") or f"HTTP {response.status_code}"),
                status_code=response.status_code,
            )
        suggestion = payload.get("suggestion")
        return suggestion if isinstance(suggestion, str) else ""

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


class LocalSuggestionBackend:
    """Calls the orchestrators in-process; used when no API server is running."""

    def __init__(self, completion: CompletionOrchestrator, inspiration: InspirationOrchestrator) -> None:
        self._completion = completion
        self._inspiration = inspiration

    async def suggest(self, content: str, inspiration: str | None = None) -> str:
        return await self._completion.suggest(content, inspiration)

    async def enrich(self, inspiration: str) -> str:
        return await self._inspiration.enrich(inspiration)

    async def aclose(self) -> None:
        await self._completion.aclose()
        await self._inspiration.aclose()
