"""Single-call line suggestion (no tools)."""

from __future__ import annotations

import logging

from ...editor.lines import is_partial
from ..prompts import inspiration_guidance_prompt, suggestion_system_prompt, suggestion_user_prompt
from ..types import Message
from .base import BaseOrchestrator, require_text
from .execute import execute_model

__all__ = ["CompletionOrchestrator", "build_suggestion_messages"]

LOGGER = logging.getLogger(__name__)


def build_suggestion_messages(content: str, inspiration: str | None = None) -> tuple[Message, ...]:
    """System framing, optional inspiration guidance, then lyrics plus the instruction."""

    partial = is_partial(content)
    messages = [Message.system(suggestion_system_prompt(partial))]
    if inspiration and inspiration.strip():
        messages.append(Message.user(inspiration_guidance_prompt(inspiration)))
    messages.append(Message.user(suggestion_user_prompt(content, partial)))
    return tuple(messages)


class CompletionOrchestrator(BaseOrchestrator):
    """Produces one suggested line, or the completion of the current line."""

    async def suggest(self, content: str, inspiration: str | None = None) -> str:
        """Return the trimmed suggestion for ``content``.

        Raises:
            ConfigurationError: No OpenAI key is configured (before any network call).
            GenerationError: The model answered with nothing usable.
            asyncio.CancelledError: The awaiting task was cancelled.
        """

        self._require_openai()
        content = content or ""
        messages = build_suggestion_messages(content, inspiration)
        LOGGER.debug(
            "Requesting %s suggestion (%d chars, inspiration=%s)",
            "partial" if is_partial(content) else "next-line",
            len(content),
            bool(inspiration),
        )
        response = await execute_model(
            messages,
            self._model_client(),
            model=self._settings.completion_model,
            **self._tuning(),
        )
        return require_text(response.text, "No suggestion received from the model")
