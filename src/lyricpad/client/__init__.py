"""Client side: suggestion lifecycle, enrichment and the editing session."""

from .backend import HttpSuggestionBackend, LocalSuggestionBackend, SuggestionBackend
from .inspiration import InspirationEnricher, combine_inspiration
from .session import EditorSession
from .suggestions import SuggestionClient, SuggestionPhase, SuggestionState, merge_suggestion

__all__ = [
    "EditorSession",
    "HttpSuggestionBackend",
    "InspirationEnricher",
    "LocalSuggestionBackend",
    "SuggestionBackend",
    "SuggestionClient",
    "SuggestionPhase",
    "SuggestionState",
    "combine_inspiration",
    "merge_suggestion",
]
