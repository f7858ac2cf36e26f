"""Lesson text clean-up."""

import re

_OPENING_FENCE = re.compile(r"^```(?:markdown)?\s*", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"```\s*$")


def strip_markdown_fence(text: str) -> str:
    """Remove a code fence wrapping the whole lesson, as models sometimes emit."""
    if not text.strip().startswith("```"):
        return text
    text = _OPENING_FENCE.sub("", text.strip())
    return _CLOSING_FENCE.sub("", text)
