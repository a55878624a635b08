"""Tools offered to the model during inspiration enrichment."""

from .lyrics_search import (
    LOOKUP_FAILED,
    NO_LYRICS_FOUND,
    SEARCH_LYRICS_TOOL,
    GeniusLyricsProvider,
    LyricsSearchTool,
    SongHit,
)
from .registry import DuplicateToolError, ToolNotFoundError, ToolRegistry
from .types import Tool, ToolSpec

__all__ = [
    "LOOKUP_FAILED",
    "NO_LYRICS_FOUND",
    "SEARCH_LYRICS_TOOL",
    "DuplicateToolError",
    "GeniusLyricsProvider",
    "LyricsSearchTool",
    "SongHit",
    "Tool",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolSpec",
]
