"""Shared plumbing for the server-side orchestrators."""

from __future__ import annotations

import logging
from typing import Any

from ...errors import ConfigurationError, GenerationError
from ...services.settings import Settings
from ..client import AIClient, ClientSettings
from .execute import ModelClient

__all__ = ["BaseOrchestrator", "require_text"]

LOGGER = logging.getLogger(__name__)


def require_text(text: str | None, message: str) -> str:
    """Return ``text`` trimmed, raising :class:`GenerationError` when nothing is left."""

    stripped = (text or "").strip()
    if not stripped:
        raise GenerationError(message=message)
    return stripped


class BaseOrchestrator:
    """Holds settings and a lazily built model client."""

    def __init__(self, settings: Settings, *, client: ModelClient | None = None) -> None:
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    @property
    def settings(self) -> Settings:
        return self._settings

    def _require_openai(self) -> None:
        if not (self._settings.openai_api_key or "").strip():
            raise ConfigurationError.missing("OpenAI API key", "openai_api_key")

    def _model_client(self) -> ModelClient:
        if self._client is None:
            self._client = AIClient(ClientSettings.from_settings(self._settings))
            LOGGER.debug("Created AI client for %s", self._settings.base_url)
        return self._client

    def _tuning(self) -> dict[str, Any]:
        # Reasoning models reject custom temperatures; blank knobs are dropped by AIClient.
        return {
            "temperature": None,
            "reasoning_effort": self._settings.reasoning_effort or None,
            "verbosity": self._settings.verbosity or None,
        }

    async def aclose(self) -> None:
        if self._owns_client and isinstance(self._client, AIClient):
            await self._client.aclose()
            self._client = None
