"""Model client, prompts, tools and orchestrators."""

from .client import AIClient, AIStreamEvent, ClientSettings
from .orchestration import CompletionOrchestrator, InspirationOrchestrator
from .types import Message, ModelResponse, ParsedToolCall

__all__ = [
    "AIClient",
    "AIStreamEvent",
    "ClientSettings",
    "CompletionOrchestrator",
    "InspirationOrchestrator",
    "Message",
    "ModelResponse",
    "ParsedToolCall",
]
