"""Text normalization shared by the indexer and the scorer.

Every comparable string in the search stack goes through :func:`canonicalize`
once at index-build time. Queries go through the same function per keystroke,
so both sides end up in the same lowercase, diacritic-free, punctuation-folded
shape. :func:`compact` drops the remaining whitespace so glued queries such as
``workingmemory`` still meet ``working memory``.

All helpers are total: they accept arbitrary objects and never raise.
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
import math
import re
import unicodedata


_WHITESPACE_PATTERN = re.compile(r"\s+")
_YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b", re.ASCII)
_SEPARATOR_CATEGORIES = frozenset({"P", "S"})
_REPLACEMENT_CHAR = "\ufffd"


def sanitize_text(text: str) -> str:
    """Drop control characters and replace unpaired surrogates.

    Tab, newline and carriage return survive; every other C0 control is
    removed. Lone surrogate code points (which cannot be encoded) become
    U+FFFD.
    """
    out: list[str] = []
    for char in text:
        code = ord(char)
        if code <= 0x08 or code in (0x0B, 0x0C) or 0x0E <= code <= 0x1F:
            continue
        if 0xD800 <= code <= 0xDFFF:
            out.append(_REPLACEMENT_CHAR)
            continue
        out.append(char)
    return "".join(out)


def normalize_text(value: object) -> str:
    """Return sanitized, trimmed text; anything that is not a string becomes ``""``."""
    if not isinstance(value, str):
        return ""
    return sanitize_text(value).strip()


def _safe_unicode_normalize(text: str, form: str) -> str:
    try:
        return unicodedata.normalize(form, text)
    except (TypeError, ValueError):
        return text


def canonicalize(value: object) -> str:
    """Return the canonical comparable form of ``value``.

    NFKD decomposition, combining marks stripped, lowercased, and every run of
    punctuation, symbols or whitespace folded into one space. The result has
    no leading or trailing whitespace.

    >>> canonicalize("  José García-Márquez!  ")
    'jose garcia marquez'
    """
    text = normalize_text(value)
    if not text:
        return ""

    pieces: list[str] = []
    pending_space = False
    for char in _safe_unicode_normalize(text, "NFKD"):
        category = unicodedata.category(char)
        if category[0] == "M":
            continue
        if category[0] in _SEPARATOR_CATEGORIES or char.isspace():
            pending_space = True
            continue
        if pending_space and pieces:
            pieces.append(" ")
        pending_space = False
        pieces.append(char.lower())
    return "".join(pieces)


def compact(value: object) -> str:
    """Remove all whitespace from ``value``."""
    if not isinstance(value, str):
        return ""
    return _WHITESPACE_PATTERN.sub("", value)


def collation_key(value: object) -> tuple[str, str]:
    """Sort key that ignores case and diacritics, ties broken by the casefolded text.

    >>> sorted(["Zeta", "Étude", "Euler"], key=collation_key)
    ['Étude', 'Euler', 'Zeta']
    """
    text = normalize_text(value)
    base = "".join(
        char for char in _safe_unicode_normalize(text, "NFKD") if not unicodedata.category(char).startswith("M")
    )
    return base.casefold(), text.casefold()


def tokenize_query(normalized_query: str) -> tuple[str, ...]:
    """Split a canonical query into unique tokens, keeping first-seen order."""
    if not normalized_query:
        return ()
    return tuple(dict.fromkeys(token for token in normalized_query.split() if token))


def extract_year(value: str) -> str | None:
    """Return the first four-digit ``19xx``/``20xx`` year found in ``value``."""
    if not value:
        return None
    match = _YEAR_PATTERN.search(value)
    return match.group(0) if match else None


def to_modified_timestamp(value: object) -> int:
    """Parse a modification date into epoch milliseconds, ``0`` when unparseable.

    Accepts ISO-8601 (including the ``YYYY-MM-DD HH:MM:SS`` form used by
    reference managers and a trailing ``Z``) and RFC 2822 dates. Naive values
    are read as UTC.
    """
    text = normalize_text(value)
    if not text:
        return 0

    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            parsed = None
    if parsed is None:
        return 0

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return int(parsed.timestamp() * 1000)
    except (OverflowError, OSError, ValueError):
        return 0


def normalize_positive_int(value: object) -> int | None:
    """Coerce ``value`` into a positive integer id, or ``None``.

    Floats are floored, numeric strings are parsed, booleans and non-finite
    numbers are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    normalized = math.floor(parsed)
    return normalized if normalized > 0 else None


def normalize_positive_ids(values: object) -> list[int]:
    """Normalize an iterable of ids, dropping anything that is not a positive integer."""
    if values is None or isinstance(values, (str, bytes)):
        return []
    try:
        iterator = iter(values)  # type: ignore[call-overload]
    except TypeError:
        return []
    out: list[int] = []
    for value in iterator:
        normalized = normalize_positive_int(value)
        if normalized is not None:
            out.append(normalized)
    return out
