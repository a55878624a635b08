"""Two-phase inspiration enrichment with a lyrics search tool.

Phase one offers the model ``search_lyrics``. When the model calls it, every
call runs concurrently, the results are appended as tool messages and a second
model call produces the final elaboration. The lyrics excerpts themselves are
appended verbatim after that elaboration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from ...errors import ConfigurationError
from ...services.settings import Settings
from ..prompts import INSPIRATION_SYSTEM_PROMPT, inspiration_user_prompt
from ..tools import GeniusLyricsProvider, LyricsSearchTool, SEARCH_LYRICS_TOOL, ToolRegistry
from ..types import Message, ModelResponse
from .base import BaseOrchestrator, require_text
from .execute import ModelClient, execute_model
from .tools import ToolExecutionResult, append_tool_results, execute_tools

__all__ = ["InspirationOrchestrator", "InspirationPhase", "InspirationRun"]

LOGGER = logging.getLogger(__name__)


class InspirationPhase(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    AWAITING_TOOL = "awaiting_tool"
    AWAITING_FINAL = "awaiting_final"
    DONE = "done"


@dataclass(slots=True)
class InspirationRun:
    """Per-request state of the tool loop."""

    messages: tuple[Message, ...]
    phase: InspirationPhase = InspirationPhase.AWAITING_MODEL
    response: ModelResponse | None = None
    tool_results: tuple[ToolExecutionResult, ...] = ()
    text: str = ""
    history: list[InspirationPhase] = field(default_factory=list)

    def advance(self, phase: InspirationPhase) -> None:
        self.history.append(self.phase)
        self.phase = phase

    @property
    def lyrics(self) -> list[str]:
        return [result.result for result in self.tool_results if result.name == SEARCH_LYRICS_TOOL.name and result.success]


class InspirationOrchestrator(BaseOrchestrator):
    """Expands a raw inspiration string, optionally pulling in reference lyrics."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: ModelClient | None = None,
        tools: ToolRegistry | None = None,
    ) -> None:
        super().__init__(settings, client=client)
        self._tools = tools
        self._provider: GeniusLyricsProvider | None = None

    def _require_genius(self) -> None:
        if not (self._settings.genius_access_token or "").strip():
            raise ConfigurationError.missing("Genius API access token", "genius_access_token")

    def _registry(self) -> ToolRegistry:
        if self._tools is None:
            self._provider = GeniusLyricsProvider(
                self._settings.genius_access_token,
                base_url=self._settings.genius_base_url,
                timeout=self._settings.lookup_timeout,
            )
            self._tools = ToolRegistry([LyricsSearchTool(self._provider)])
        return self._tools

    async def enrich(self, inspiration: str) -> str:
        """Return the enriched inspiration text.

        Raises:
            ConfigurationError: The OpenAI key or Genius token is missing.
            GenerationError: A model phase produced no text.
            asyncio.CancelledError: The awaiting task was cancelled.
        """

        self._require_openai()
        self._require_genius()
        run = InspirationRun(
            messages=(
                Message.system(INSPIRATION_SYSTEM_PROMPT),
                Message.user(inspiration_user_prompt(inspiration)),
            )
        )
        while run.phase is not InspirationPhase.DONE:
            await self._step(run)
        LOGGER.debug("Inspiration run finished via %s", " -> ".join(phase.value for phase in run.history))
        return run.text

    async def _step(self, run: InspirationRun) -> None:
        registry = self._registry()
        if run.phase is InspirationPhase.AWAITING_MODEL:
            response = await execute_model(
                run.messages,
                self._model_client(),
                model=self._settings.inspiration_model,
                tools=registry.to_openai_tools(),
                **self._tuning(),
            )
            run.response = response
            if response.has_tool_calls:
                LOGGER.debug("Model requested %d tool call(s)", len(response.tool_calls))
                run.advance(InspirationPhase.AWAITING_TOOL)
                return
            run.text = require_text(response.text, "No suggestion received from the model")
            run.advance(InspirationPhase.DONE)
        elif run.phase is InspirationPhase.AWAITING_TOOL:
            assert run.response is not None
            run.tool_results = await execute_tools(run.response, registry)
            run.messages = append_tool_results(run.messages, run.response, run.tool_results)
            run.advance(InspirationPhase.AWAITING_FINAL)
        elif run.phase is InspirationPhase.AWAITING_FINAL:
            final = await execute_model(
                run.messages,
                self._model_client(),
                model=self._settings.final_model,
                **self._tuning(),
            )
            elaboration = require_text(final.text, "No final suggestion received from the model")
            run.text = "\n\n".join([elaboration, *run.lyrics])
            run.advance(InspirationPhase.DONE)

    async def aclose(self) -> None:
        await super().aclose()
        if self._provider is not None:
            await self._provider.aclose()
            self._provider = None
