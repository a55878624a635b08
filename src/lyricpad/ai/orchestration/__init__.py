"""Server-side orchestration of model calls."""

from .completion import CompletionOrchestrator, build_suggestion_messages
from .execute import ModelClient, aggregate_streaming_events, execute_model
from .inspiration import InspirationOrchestrator, InspirationPhase, InspirationRun
from .tools import ToolExecutionResult, append_tool_results, execute_tool_call, execute_tools

__all__ = [
    "CompletionOrchestrator",
    "InspirationOrchestrator",
    "InspirationPhase",
    "InspirationRun",
    "ModelClient",
    "ToolExecutionResult",
    "aggregate_streaming_events",
    "append_tool_results",
    "build_suggestion_messages",
    "execute_model",
    "execute_tool_call",
    "execute_tools",
]
