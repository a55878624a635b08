"""Async AI client wrapper built around OpenAI-compatible endpoints."""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Mapping, Sequence, cast

import httpx
from openai import AsyncOpenAI, APIConnectionError, APIError, APIStatusError, RateLimitError
from openai.lib.streaming.chat import ChatCompletionStreamEvent
from openai.types.chat import (
    ChatCompletionMessageParam,
    ChatCompletionToolChoiceOptionParam,
    ChatCompletionToolParam,
)
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..services.settings import Settings

__all__ = ["AIClient", "AIStreamEvent", "ClientSettings"]

LOGGER = logging.getLogger(__name__)

_RETRYABLE_ERRORS = (
    APIError,
    APIStatusError,
    APIConnectionError,
    RateLimitError,
    httpx.TimeoutException,
)


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the AI client."""

    base_url: str
    api_key: str
    model: str
    request_timeout: float | None = 90.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False

    @classmethod
    def from_settings(cls, settings: Settings, *, model: str | None = None) -> "ClientSettings":
        return cls(
            base_url=settings.base_url,
            api_key=settings.openai_api_key,
            model=model or settings.completion_model,
            request_timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            retry_min_seconds=settings.retry_min_seconds,
            retry_max_seconds=settings.retry_max_seconds,
            debug_logging=settings.debug_logging,
        )


@dataclass(slots=True)
class AIStreamEvent:
    """Normalized representation of streaming deltas."""

    type: str
    content: str | None = None
    parsed: Any | None = None
    tool_name: str | None = None
    tool_index: int | None = None
    tool_arguments: str | None = None
    arguments_delta: str | None = None
    tool_call_id: str | None = None


class AIClient:
    """Async client providing streaming helpers with retry semantics."""

    def __init__(self, settings: ClientSettings, *, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or self._build_client(settings)

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def stream_chat(
        self,
        messages: Iterable[Mapping[str, Any] | ChatCompletionMessageParam],
        *,
        model: str | None = None,
        tools: Iterable[ChatCompletionToolParam] | None = None,
        tool_choice: ChatCompletionToolChoiceOptionParam | None = None,
        temperature: float | None = None,
        max_completion_tokens: int | None = None,
        **extra_params: Any,
    ) -> AsyncIterator[AIStreamEvent]:
        """Stream chat completions for the provided messages.

        Transport failures are retried with exponential backoff. Cancelling the
        consuming task closes the underlying HTTP stream.
        """

        payload = self._build_chat_payload(
            messages=self._coerce_messages(messages),
            model=model,
            tools=tools,
            tool_choice=tool_choice,
            temperature=temperature,
            max_completion_tokens=max_completion_tokens,
            extra_params=extra_params,
        )
        LOGGER.debug(
            "Starting streamed chat completion via %s with %s message(s)",
            payload["model"],
            len(payload["messages"]),
        )
        if self._settings.debug_logging:
            self._log_prompt_payload(payload)

        # Failures after the first yielded event are not retried.
        yielded = False
        async for attempt in self._retrying(lambda: not yielded):
            with attempt:
                async with self._client.chat.completions.stream(**payload) as stream:
                    async for event in stream:
                        normalized = self._normalize_stream_event(event)
                        if normalized is not None:
                            yielded = True
                            yield normalized
                break

    def _build_client(self, settings: ClientSettings) -> AsyncOpenAI:
        headers = dict(settings.default_headers) if settings.default_headers else None
        return AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            default_headers=headers,
            # Retries are handled by tenacity.
            max_retries=0,
        )

    def _retrying(self, may_retry: Callable[[], bool] = lambda: True) -> AsyncRetrying:
        def _should_retry(exc: BaseException) -> bool:
            return isinstance(exc, _RETRYABLE_ERRORS) and may_retry()

        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=self._settings.retry_min_seconds,
                max=self._settings.retry_max_seconds,
            ),
            retry=retry_if_exception(_should_retry),
        )

    def _coerce_messages(
        self, messages: Iterable[Mapping[str, Any] | ChatCompletionMessageParam]
    ) -> List[ChatCompletionMessageParam]:
        normalized = [cast(ChatCompletionMessageParam, dict(message)) for message in messages]
        if not normalized:
            raise ValueError("At least one message is required to start a chat")
        return normalized

    def _build_chat_payload(
        self,
        *,
        messages: Sequence[ChatCompletionMessageParam],
        model: str | None,
        tools: Iterable[ChatCompletionToolParam] | None,
        tool_choice: ChatCompletionToolChoiceOptionParam | None,
        temperature: float | None,
        max_completion_tokens: int | None,
        extra_params: Mapping[str, Any],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model or self._settings.model,
            "messages": list(messages),
        }
        if tools:
            payload["tools"] = list(tools)
        if tool_choice:
            payload["tool_choice"] = tool_choice
        if temperature is not None:
            payload["temperature"] = temperature
        if max_completion_tokens is not None:
            payload["max_completion_tokens"] = max_completion_tokens
        # Blank tuning knobs (reasoning_effort="", verbosity=None) are left to the server default.
        payload.update({key: value for key, value in extra_params.items() if value not in (None, "")})
        return payload

    def _normalize_stream_event(self, event: ChatCompletionStreamEvent[Any]) -> AIStreamEvent | None:
        event_type = getattr(event, "type", None)
        if event_type is None:
            return None
        if event_type == "chunk":
            return self._tool_call_id_event(event)
        if event_type == "content.delta":
            delta_text = getattr(event, "delta", None)
            if delta_text:
                return AIStreamEvent(type=event_type, content=str(delta_text))
            return None
        if event_type == "content.done":
            return AIStreamEvent(
                type=event_type,
                content=getattr(event, "content", None),
                parsed=getattr(event, "parsed", None),
            )
        if event_type == "refusal.done":
            return AIStreamEvent(type=event_type, content=getattr(event, "refusal", None))
        if event_type in ("tool_calls.function.arguments.delta", "tool_calls.function.arguments.done"):
            return AIStreamEvent(
                type=event_type,
                tool_name=getattr(event, "name", None),
                tool_index=getattr(event, "index", None),
                tool_arguments=getattr(event, "arguments", None),
                arguments_delta=getattr(event, "arguments_delta", None),
                parsed=getattr(event, "parsed_arguments", None),
                tool_call_id=getattr(event, "id", None) or getattr(event, "tool_call_id", None),
            )
        return None

    def _tool_call_id_event(self, event: Any) -> AIStreamEvent | None:
        # Argument events carry no call id; it only appears on the first raw chunk of each call.
        choices = getattr(getattr(event, "chunk", None), "choices", None) or ()
        for choice in choices:
            for call in getattr(getattr(choice, "delta", None), "tool_calls", None) or ():
                call_id = getattr(call, "id", None)
                if call_id:
                    return AIStreamEvent(
                        type="tool_calls.id",
                        tool_index=getattr(call, "index", None),
                        tool_call_id=call_id,
                    )
        return None

    def _log_prompt_payload(self, payload: Mapping[str, Any]) -> None:
        try:
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            LOGGER.debug("AI prompt payload (unserializable): %s", payload)
        else:
            LOGGER.debug("AI prompt payload:\n%s", serialized)

    async def aclose(self) -> None:
        """Close the underlying OpenAI client to release network resources."""

        close = getattr(self._client, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result
