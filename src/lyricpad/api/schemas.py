"""Request and response bodies of the HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class SuggestRequest(BaseModel):
    """Text before the cursor plus the pad's inspiration."""

    content: str = Field(default="")
    inspiration: Optional[str] = None


class InspirationRequest(BaseModel):
    inspiration: str = Field(default="")


class SuggestionResponse(BaseModel):
    suggestion: str


class ErrorResponse(BaseModel):
    error: str
