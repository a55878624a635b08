"""Best-effort lyrics lookup against the Genius catalog.

The provider talks to the Genius search API for song hits and scrapes the
public song page for the lyrics text. The tool wrapper never lets a lookup
failure escape: the model receives a placeholder string instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx
from bs4 import BeautifulSoup

from ...errors import LyricsLookupError
from .types import ToolSpec

__all__ = [
    "SongHit",
    "GeniusLyricsProvider",
    "LyricsSearchTool",
    "SEARCH_LYRICS_TOOL",
    "NO_LYRICS_FOUND",
    "LOOKUP_FAILED",
    "extract_lyrics",
    "format_lyrics",
]

LOGGER = logging.getLogger(__name__)

NO_LYRICS_FOUND = "No lyrics found."
LOOKUP_FAILED = "Error searching for lyrics."
DEFAULT_GENIUS_BASE_URL = "https://api.genius.com"
_LYRICS_CONTAINER = '[data-lyrics-container="true"]'
_EXCLUDED = '[data-exclude-from-selection="true"]'

SEARCH_LYRICS_TOOL = ToolSpec(
    name="search_lyrics",
    description="Search for lyrics by an artist",
    parameters={
        "type": "object",
        "properties": {
            "artist": {
                "type": "string",
                "description": "The artist to search for",
            },
        },
        "required": ["artist"],
        "additionalProperties": False,
    },
)


@dataclass(slots=True, frozen=True)
class SongHit:
    """One song returned by a catalog search."""

    title: str
    artist: str
    url: str


def format_lyrics(hit: SongHit, lyrics: str) -> str:
    return f'### Lyrics from "{hit.title}" by {hit.artist}\n\n{lyrics.strip()}'


class GeniusLyricsProvider:
    """Thin async client for the Genius search API and song pages."""

    def __init__(
        self,
        access_token: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = DEFAULT_GENIUS_BASE_URL,
        timeout: float = 15.0,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    async def search(self, query: str) -> list[SongHit]:
        """Return song hits for ``query`` in catalog relevance order."""

        try:
            response = await self._http().get(
                f"{self._base_url}/search",
                params={"q": query},
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LyricsLookupError(
                message=f"Genius search failed: {exc}", details={"query": query}
            ) from exc
        body = (payload.get("response") or {}) if isinstance(payload, Mapping) else None
        hits = (body.get("hits") or []) if isinstance(body, Mapping) else None
        if not isinstance(hits, list):
            raise LyricsLookupError(
                message="Genius search returned an unexpected payload", details={"query": query}
            )
        return [hit for hit in (self._parse_hit(item) for item in hits) if hit is not None]

    async def fetch_lyrics(self, hit: SongHit) -> str:
        """Scrape the lyrics text from the song page; empty when the page has none."""

        try:
            response = await self._http().get(hit.url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise LyricsLookupError(
                message=f"Unable to fetch lyrics page: {exc}", details={"url": hit.url}
            ) from exc
        return extract_lyrics(response.text)

    @staticmethod
    def _parse_hit(item: Any) -> SongHit | None:
        if not isinstance(item, Mapping):
            raise LyricsLookupError(message=f"Malformed search hit: {item!r}")
        if item.get("type", "song") != "song":
            return None
        result = item.get("result") or {}
        if not isinstance(result, Mapping):
            raise LyricsLookupError(message=f"Malformed search hit result: {result!r}")
        url = result.get("url")
        if not url:
            return None
        primary = result.get("primary_artist")
        artist = (primary.get("name") if isinstance(primary, Mapping) else None) or result.get("artist_names") or ""
        return SongHit(title=str(result.get("title") or ""), artist=str(artist), url=str(url))

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def extract_lyrics(html: str) -> str:
    """Return the lyrics text of a Genius song page, ``<br>`` rendered as newlines."""

    soup = BeautifulSoup(html, "html.parser")
    blocks: list[str] = []
    for container in soup.select(_LYRICS_CONTAINER):
        for excluded in container.select(_EXCLUDED):
            excluded.decompose()
        for br in container.find_all("br"):
            br.replace_with("\n")
        text = container.get_text()
        if text.strip():
            blocks.append(text.strip())
    return "\n".join(blocks).strip()


class LyricsSearchTool:
    """``search_lyrics`` tool: first catalog hit for an artist, formatted for the model."""

    def __init__(self, provider: GeniusLyricsProvider) -> None:
        self._provider = provider

    @property
    def name(self) -> str:
        return SEARCH_LYRICS_TOOL.name

    @property
    def spec(self) -> ToolSpec:
        return SEARCH_LYRICS_TOOL

    async def execute(self, arguments: Mapping[str, Any]) -> str:
        artist = str(arguments.get("artist") or "").strip()
        if not artist:
            return NO_LYRICS_FOUND
        try:
            hits = await self._provider.search(artist)
            if not hits:
                return NO_LYRICS_FOUND
            first = hits[0]
            lyrics = await self._provider.fetch_lyrics(first)
        except LyricsLookupError as exc:
            LOGGER.warning("Lyrics lookup for %r failed: %s", artist, exc.message)
            return LOOKUP_FAILED
        if not lyrics:
            return NO_LYRICS_FOUND
        LOGGER.debug("Found lyrics for %r: %s", artist, first.title)
        return format_lyrics(first, lyrics)
