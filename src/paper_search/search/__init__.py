"""Search core: normalization, scoring, indexing, caching and browse trees.

Modules here are imported directly (``paper_search.search.scoring``) so that
``paper_search.domain`` can depend on ``normalization`` without a cycle.
"""
