"""Route handlers for suggestions, inspiration enrichment and health."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, TypeVar

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from ..errors import ConfigurationError, LyricPadError, RequestAborted
from .schemas import ErrorResponse, InspirationRequest, SuggestRequest, SuggestionResponse

__all__ = ["router", "run_until_disconnect", "ABORTED_STATUS", "GENERIC_FAILURE"]

LOGGER = logging.getLogger(__name__)

ABORTED_STATUS = 499
GENERIC_FAILURE = "Failed to generate suggestion"
DISCONNECT_POLL_SECONDS = 0.1

T = TypeVar("T")

router = APIRouter(prefix="/api", tags=["suggestions"])
_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    500: {"model": ErrorResponse},
    ABORTED_STATUS: {"description": "Client disconnected before the answer was ready"},
}


async def _wait_for_disconnect(request: Request, poll_seconds: float) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(poll_seconds)


async def run_until_disconnect(
    request: Request,
    work: Awaitable[T],
    *,
    poll_seconds: float = DISCONNECT_POLL_SECONDS,
) -> T:
    """Await ``work`` unless the client disconnects first.

    On disconnect the work is cancelled (closing any outbound model or lookup
    request) and :class:`RequestAborted` is raised.
    """

    task = asyncio.ensure_future(work)
    watcher = asyncio.ensure_future(_wait_for_disconnect(request, poll_seconds))
    try:
        done, _ = await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        watcher.cancel()

    if task in done:
        return task.result()

    task.cancel()
    await asyncio.wait({task})
    raise RequestAborted(message="Client disconnected")


def _error_response(exc: BaseException, route: str) -> Response:
    if isinstance(exc, LyricPadError) and not exc.reportable:
        LOGGER.info("%s aborted: %s", route, exc.message)
        return Response(status_code=ABORTED_STATUS)
    if isinstance(exc, ConfigurationError):
        LOGGER.error("%s misconfigured: %s", route, exc.to_dict())
        body = ErrorResponse.model_validate(exc.to_dict())
    else:
        LOGGER.error("Error in %s: %s", route, exc, exc_info=exc)
        body = ErrorResponse(error=GENERIC_FAILURE)
    return JSONResponse(body.model_dump(), status_code=500)


async def _respond(request: Request, work: Awaitable[str], route: str) -> Any:
    try:
        suggestion = await run_until_disconnect(request, work)
    except Exception as exc:
        return _error_response(exc, route)
    return SuggestionResponse(suggestion=suggestion)


@router.post("/suggest", response_model=SuggestionResponse, responses=_ERROR_RESPONSES)
async def suggest(body: SuggestRequest, request: Request) -> Any:
    orchestrator = request.app.state.completion
    return await _respond(request, orchestrator.suggest(body.content, body.inspiration), "suggest API")


@router.post("/inspiration", response_model=SuggestionResponse, responses=_ERROR_RESPONSES)
async def inspiration(body: InspirationRequest, request: Request) -> Any:
    orchestrator = request.app.state.inspiration
    return await _respond(request, orchestrator.enrich(body.inspiration), "inspiration API")


health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
