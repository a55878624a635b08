"""Prompt templates for line suggestions and inspiration enrichment."""

from __future__ import annotations

from ..editor.lines import last_line

__all__ = [
    "INSPIRATION_SYSTEM_PROMPT",
    "suggestion_system_prompt",
    "inspiration_guidance_prompt",
    "suggestion_user_prompt",
    "inspiration_user_prompt",
]


def suggestion_system_prompt(partial: bool) -> str:
    task = "complete the line with text" if partial else "suggest a single additional line"
    answer = "line completion" if partial else "suggested line"
    return (
        "You are a creative lyricist helping to write song lyrics.\n"
        f"Given the existing lyrics, {task} that flows naturally and maintains the style, rhythm, and theme.\n"
        f"Only respond with the {answer}, no explanations or quotes."
    )


def inspiration_guidance_prompt(inspiration: str) -> str:
    return f"Inspiration/Style guidance:\n\n{inspiration.strip()}"


def suggestion_user_prompt(content: str, partial: bool) -> str:
    """Existing lyrics followed by the explicit instruction for this completion kind."""

    sections: list[str] = []
    if content:
        sections.append(f"Here are the current lyrics:\n\n{content}")
    if partial:
        sections.append(f"Complete this line:\n\n{last_line(content)}")
    else:
        sections.append("Suggest the next line:")
    return "\n\n\n".join(sections).strip()


INSPIRATION_SYSTEM_PROMPT = """\
You are an inspiration context generator for a song lyricist.
You will be given a description of inspiration for a song that you will expand upon.
You can use a lyrics search tool to find existing lyrics to include that match the provided inspiration.

For example, if the inspiration includes "Bryson Tiller" as an artist, you can search for Bryson Tiller's lyrics as well as provide an expanded description of the artist.

You can describe the artist, their genre and style.
You should not write your own lyrics for inspiration. Lyrics found in the lyrics search tool will be included automatically after you have called the tool and they do not need to be included or repeated in your response.
You are not directly communicating with the user. You should not ask any questions or suggest any additional steps to gather more inspiration context."""


def inspiration_user_prompt(inspiration: str) -> str:
    return f"Inspiration:\n\n{inspiration}\n\nAdditional inspiration context:"
