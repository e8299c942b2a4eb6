"""Service layer - public paper search entry points."""

from paper_search.service_layer.notifications import should_invalidate
from paper_search.service_layer.paper_search_service import PaperSearchService


__all__ = [
    "PaperSearchService",
    "should_invalidate",
]
