"""Paper search service orchestration layer.

Public entry point for interactive paper lookup: ranked search, folder browse,
cache invalidation and slash-trigger parsing. Index builds are shared through
the :class:`LibraryIndexCache`, so rapid typing never multiplies store reads.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
import math

from paper_search.adapters.library_store import AbstractLibraryStore
from paper_search.config import Settings
from paper_search.domain.model import CollectionCandidate, PaperCandidate, SlashToken
from paper_search.observability.context import bind_library
from paper_search.observability.metrics import SEARCH_LATENCY, track_latency
from paper_search.observability.tracing import create_span
from paper_search.search.collection_tree import (
    build_collection_tree,
    build_visible_candidate,
    build_visible_candidates,
)
from paper_search.search.index_cache import LibraryIndexCache
from paper_search.search.indexer import LibraryIndexer
from paper_search.search.normalization import (
    canonicalize,
    collation_key,
    normalize_positive_int,
    normalize_text,
    tokenize_query,
)
from paper_search.search.scoring import QueryTerms, score_candidate
from paper_search.search.slash_token import parse_slash_token
from paper_search.service_layer.notifications import should_invalidate


logger = logging.getLogger(__name__)


class PaperSearchService:
    """High-level paper search orchestration service.

    Owns one index cache over the injected store. Every public method degrades
    malformed input to an empty result instead of raising.
    """

    def __init__(
        self,
        store: AbstractLibraryStore,
        settings: Settings | None = None,
        cache: LibraryIndexCache | None = None,
    ):
        """Initialize the service with its store.

        Args:
            store: Library store the indexer reads snapshots from (required)
            settings: Runtime settings, loaded from the environment when omitted
            cache: Pre-built index cache, mainly for sharing across services
        """
        self.store = store
        self.settings = settings or Settings()
        self.indexer = LibraryIndexer(store, attachment_content_type=self.settings.attachment_content_type)
        self.cache = cache or LibraryIndexCache(self.indexer.build_index)

    async def search(
        self,
        library_id: object,
        query: object,
        exclude_attachment_id: object = None,
        limit: object = None,
    ) -> list[PaperCandidate]:
        """Rank the library's papers against a free-text query.

        Args:
            library_id: Library to search; non-positive ids yield no results
            query: Raw user text, canonicalized before matching
            exclude_attachment_id: Attachment to hide from every result
            limit: Maximum results (at least 1); the configured default when
                omitted or not a finite number

        Returns:
            Matching papers ordered by score, matched-token count, then most
            recently modified; attachments within each ordered by their own score
        """
        normalized_library_id = normalize_positive_int(library_id)
        if normalized_library_id is None:
            return []
        normalized_query = canonicalize(query)
        if not normalized_query:
            return []
        tokens = tokenize_query(normalized_query)
        if not tokens:
            return []
        max_results = self._resolve_limit(limit)

        bind_library(normalized_library_id)
        with (
            track_latency(SEARCH_LATENCY, operation="search"),
            create_span(
                "paper_search.search",
                attributes={
                    "paper_search.library_id": normalized_library_id,
                    "paper_search.query.tokens": len(tokens),
                    "paper_search.limit": max_results,
                },
            ) as span,
        ):
            index = await self.cache.get(normalized_library_id)
            terms = QueryTerms.prepare(normalized_query, tokens)

            ranked: list[tuple[PaperCandidate, int]] = []
            for indexed in index.candidates:
                visible = build_visible_candidate(indexed, exclude_attachment_id)
                if visible is None:
                    continue
                scored = score_candidate(indexed, visible, terms)
                if scored is None:
                    continue
                visible.score = scored.score
                visible.attachments.sort(key=lambda attachment: (-attachment.score, collation_key(attachment.title)))
                ranked.append((visible, scored.matched_token_count))

            ranked.sort(key=lambda entry: (-entry[0].score, -entry[1], -entry[0].modified_at))
            results = [candidate for candidate, _ in ranked[:max_results]]
            span.set_attribute("paper_search.results", len(results))

        logger.debug(
            "Search for %r in library %s: %d of %d candidates matched, returning %d",
            normalized_query,
            normalized_library_id,
            len(ranked),
            len(index.candidates),
            len(results),
        )
        return results

    async def browse(self, library_id: object, exclude_attachment_id: object = None) -> list[CollectionCandidate]:
        """Return the library's folder forest with every visible paper attached."""
        normalized_library_id = normalize_positive_int(library_id)
        if normalized_library_id is None:
            return []

        bind_library(normalized_library_id)
        with (
            track_latency(SEARCH_LATENCY, operation="browse"),
            create_span("paper_search.browse", attributes={"paper_search.library_id": normalized_library_id}) as span,
        ):
            index = await self.cache.get(normalized_library_id)
            visible = build_visible_candidates(index, exclude_attachment_id)
            tree = build_collection_tree(index, visible, self.resolve_library_name(normalized_library_id))
            span.set_attribute("paper_search.results", len(tree))
        return tree

    def invalidate(self, library_id: object = None) -> None:
        """Drop cached indexes so the next query rebuilds from the store."""
        self.cache.invalidate(library_id)

    @staticmethod
    def parse_slash_token(text: object, caret: object) -> SlashToken | None:
        return parse_slash_token(text, caret)

    async def on_notify(
        self,
        event: str,
        object_type: str,
        ids: Sequence[int | str],
        extra: dict | None = None,
    ) -> bool:
        """Handle a host change notification.

        Returns:
            True when the notification invalidated the cache
        """
        invalidated = should_invalidate(event, object_type, self.settings)
        if invalidated:
            self.cache.invalidate()
        logger.debug(
            "notify event=%s type=%s ids=%s invalidated=%s",
            event,
            object_type,
            list(ids or ()),
            invalidated,
            extra={"notify_extra": extra or {}},
        )
        return invalidated

    def resolve_library_name(self, library_id: int) -> str:
        """Library display name from the store, else the configured default."""
        try:
            name = normalize_text(self.store.get_library_name(library_id))
        except Exception:
            logger.debug("Library name unavailable for %s", library_id, exc_info=True)
            name = ""
        return name or self.settings.default_library_name

    def get_cache_metrics(self, library_id: int | None = None) -> dict[int, dict[str, float | int]]:
        return self.cache.get_cache_metrics(library_id)

    def _resolve_limit(self, limit: object) -> int:
        if isinstance(limit, bool) or not isinstance(limit, (int, float)) or not math.isfinite(limit):
            return self.settings.default_search_limit
        return max(1, math.floor(limit))
