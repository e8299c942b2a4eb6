"""Detect an in-progress ``/query`` trigger in composer text."""

from __future__ import annotations

import math

from paper_search.domain.model import SlashToken
from paper_search.search.normalization import sanitize_text


def _clamp_caret(caret: object, length: int) -> int:
    if isinstance(caret, bool) or not isinstance(caret, (int, float)):
        return length
    if not math.isfinite(caret):
        return length
    return max(0, min(length, math.floor(caret)))


def parse_slash_token(text: object, caret: object) -> SlashToken | None:
    """Return the slash token the caret is currently inside, if any.

    A trigger slash sits at the start of the text or right after whitespace,
    so the slashes inside ``https://example.com/paper`` never count. The token
    stays active while the caret is within its first word; once the caret
    moves past the next whitespace the user has moved on and ``None`` is
    returned.

    >>> parse_slash_token("/attention is all you need", 10)
    SlashToken(query='attention', slash_start=0, caret_end=10)
    """
    safe_text = sanitize_text(text) if isinstance(text, str) else ""
    caret_pos = _clamp_caret(caret, len(safe_text))

    slash_index = safe_text.rfind("/", 0, caret_pos)
    while slash_index >= 0:
        if slash_index == 0 or safe_text[slash_index - 1].isspace():
            token_end = slash_index + 1
            while token_end < len(safe_text) and not safe_text[token_end].isspace():
                token_end += 1
            if caret_pos > token_end:
                return None
            return SlashToken(
                query=sanitize_text(safe_text[slash_index + 1 : min(caret_pos, token_end)]),
                slash_start=slash_index,
                caret_end=caret_pos,
            )
        slash_index = safe_text.rfind("/", 0, slash_index)
    return None
