"""Single-pass weighted field scorer for paper candidates.

Each field contributes a phrase score (exact > prefix > substring, tried on
both the canonical and the compact form) plus a per-token bonus for every
query token it contains. Fields are listed from strongest to weakest signal:
citation key, DOI, title, short title, creators, venue, year and finally the
best matching attachment title. Candidates that collect nothing are dropped;
candidates whose fields cover every query token get a coverage bonus, and a
further one when title, short title and creators cover the query on their own.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from paper_search.domain.model import CandidateScore, IndexedPaper, PaperCandidate
from paper_search.search.normalization import canonicalize, compact


@dataclass(frozen=True, slots=True)
class FieldWeights:
    exact: int = 0
    prefix: int = 0
    contains: int = 0
    token_bonus: int = 0


CITATION_KEY_WEIGHTS = FieldWeights(exact=1200, prefix=1050, contains=900, token_bonus=110)
DOI_WEIGHTS = FieldWeights(exact=1150, prefix=1000, contains=850, token_bonus=110)
TITLE_WEIGHTS = FieldWeights(exact=900, prefix=820, contains=720, token_bonus=90)
CREATOR_WEIGHTS = FieldWeights(contains=450, token_bonus=70)
VENUE_WEIGHTS = FieldWeights(contains=280, token_bonus=45)
ATTACHMENT_TITLE_WEIGHTS = FieldWeights(exact=640, prefix=600, contains=560, token_bonus=65)

SHORT_TITLE_SCORE = 500
YEAR_EXACT_SCORE = 220
YEAR_TOKEN_SCORE = 40
ALL_TOKENS_BONUS = 260
CORE_FIELDS_BONUS = 120

_ANY_MATCH = FieldWeights(exact=1, prefix=1, contains=1)


@dataclass(slots=True)
class ScoreState:
    """Query tokens matched anywhere on the candidate so far."""

    matched_tokens: set[str] = field(default_factory=set)

    def add(self, tokens: Sequence[str]) -> None:
        self.matched_tokens.update(tokens)


@dataclass(frozen=True, slots=True)
class QueryTerms:
    """A canonical query and its tokens, with compact forms prepared once per search."""

    query: str
    tokens: tuple[str, ...]
    compact_query: str
    compact_tokens: tuple[str, ...]

    @classmethod
    def prepare(cls, query: str, tokens: Sequence[str] = ()) -> QueryTerms:
        tokens = tuple(tokens)
        return cls(
            query=query,
            tokens=tokens,
            compact_query=compact(query),
            compact_tokens=tuple(compact(token) for token in tokens),
        )


def _score_simple(target: str, search: str, weights: FieldWeights) -> int:
    if not target or not search:
        return 0
    if target == search:
        return weights.exact
    if target.startswith(search):
        return weights.prefix
    if search in target:
        return weights.contains
    return 0


def _phrase_score(value: str, compact_value: str, terms: QueryTerms, weights: FieldWeights) -> int:
    if not value or not terms.query:
        return 0
    raw_score = _score_simple(value, terms.query, weights)
    if not compact_value or not terms.compact_query or (compact_value == value and terms.compact_query == terms.query):
        return raw_score
    return max(raw_score, _score_simple(compact_value, terms.compact_query, weights))


def _matching_tokens(value: str, compact_value: str, terms: QueryTerms) -> list[str]:
    if not value or not terms.tokens:
        return []
    return [
        token
        for token, compact_token in zip(terms.tokens, terms.compact_tokens)
        if token in value or compact_token in compact_value
    ]


def _score_field(
    state: ScoreState,
    value: str,
    compact_value: str,
    terms: QueryTerms,
    weights: FieldWeights,
) -> int:
    if not value:
        return 0
    phrase_score = _phrase_score(value, compact_value, terms, weights)
    matched = _matching_tokens(value, compact_value, terms)
    state.add(matched)
    token_score = len(matched) * weights.token_bonus if weights.token_bonus and matched else 0
    return phrase_score + token_score


def score_normalized_field(value: str, query: str, weights: FieldWeights) -> int:
    """Phrase score of ``query`` against ``value``, best of canonical and compact forms."""
    return _phrase_score(value, compact(value), QueryTerms.prepare(query), weights)


def matching_tokens(value: str, tokens: Sequence[str]) -> list[str]:
    """Tokens contained in ``value`` directly or once whitespace is removed."""
    return _matching_tokens(value, compact(value), QueryTerms.prepare("", tokens))


def score_field(state: ScoreState, value: str, query: str, tokens: Sequence[str], weights: FieldWeights) -> int:
    return _score_field(state, value, compact(value), QueryTerms.prepare(query, tokens), weights)


def score_candidate(candidate: IndexedPaper, visible: PaperCandidate, terms: QueryTerms) -> CandidateScore | None:
    """Score one candidate against a prepared canonical query.

    Reads the compact forms stored on the index. Writes each visible
    attachment's own score back onto it. Returns ``None`` when nothing on the
    candidate matches.
    """
    state = ScoreState()
    normalized = candidate.normalized

    score = 0
    score += _score_field(state, normalized.citation_key, normalized.citation_key_compact, terms, CITATION_KEY_WEIGHTS)
    score += _score_field(state, normalized.doi, normalized.doi_compact, terms, DOI_WEIGHTS)
    score += _score_field(state, normalized.title, normalized.title_compact, terms, TITLE_WEIGHTS)
    if _phrase_score(normalized.short_title, normalized.short_title_compact, terms, _ANY_MATCH) > 0:
        score += SHORT_TITLE_SCORE
        state.add(_matching_tokens(normalized.short_title, normalized.short_title_compact, terms))
    score += _score_field(state, normalized.creator, normalized.creator_compact, terms, CREATOR_WEIGHTS)
    score += _score_field(state, normalized.venue, normalized.venue_compact, terms, VENUE_WEIGHTS)

    year_tokens = _matching_tokens(normalized.year, normalized.year_compact, terms)
    if normalized.year and normalized.year == terms.query:
        score += YEAR_EXACT_SCORE
        state.add(year_tokens)
    elif year_tokens:
        score += len(year_tokens) * YEAR_TOKEN_SCORE
        state.add(year_tokens)

    indexed_attachments = {attachment.attachment_id: attachment for attachment in candidate.attachments}
    best_attachment_score = 0
    for attachment in visible.attachments:
        indexed = indexed_attachments.get(attachment.attachment_id)
        if indexed is None:
            normalized_title = canonicalize(attachment.title)
            compact_title = compact(normalized_title)
        else:
            normalized_title = indexed.normalized_title
            compact_title = indexed.normalized_title_compact
        attachment.score = _score_field(ScoreState(), normalized_title, compact_title, terms, ATTACHMENT_TITLE_WEIGHTS)
        best_attachment_score = max(best_attachment_score, attachment.score)
        if attachment.score > 0:
            state.add(_matching_tokens(normalized_title, compact_title, terms))
    score += best_attachment_score

    if score <= 0:
        return None

    if terms.tokens and len(state.matched_tokens) == len(terms.tokens):
        score += ALL_TOKENS_BONUS
        core_blob = " ".join(
            value for value in (normalized.title, normalized.short_title, normalized.creator) if value
        )
        core_compact = normalized.title_compact + normalized.short_title_compact + normalized.creator_compact
        if len(_matching_tokens(core_blob, core_compact, terms)) == len(terms.tokens):
            score += CORE_FIELDS_BONUS

    return CandidateScore(score=score, matched_token_count=len(state.matched_tokens))
