"""Tiered search over recognized image text."""

import threading
import time
from typing import Dict, List, Optional, Tuple

import structlog

from ..models.records import ImageRecord
from ..models.response import SearchResponse, SearchResult
from .exceptions import IndexStoreError
from .fuzzy_matcher import FuzzyMatcher
from .index import IndexStore, RankedRecords
from .normalizer import TextNormalizer

logger = structlog.get_logger(__name__)

TIERS = ("none", "prefix", "phrase", "or", "fuzzy")


class SearchEngine:
    """Turns a free-text query into ranked image records.

    Strategies are tried from strictest to loosest: a prefix query for a
    single token; an exact phrase, then an OR of prefixes for several tokens.
    When the chosen index tier yields fewer than ``escalation_threshold``
    records, or fails, the fuzzy matcher answers instead.
    """

    def __init__(
        self,
        store: IndexStore,
        fuzzy_matcher: Optional[FuzzyMatcher] = None,
        normalizer: Optional[TextNormalizer] = None,
        escalation_threshold: int = 3,
        max_results: int = 100,
        fuzzy_corpus_limit: int = 1000,
    ) -> None:
        """
        Initialize the search engine.

        Args:
            store: Index store to query
            fuzzy_matcher: Matcher used by the fuzzy tier
            normalizer: Text normalizer applied to queries
            escalation_threshold: Index results below this count fall through to fuzzy
            max_results: Maximum number of results returned
            fuzzy_corpus_limit: Most records the fuzzy tier will scan
        """
        self.store = store
        self.fuzzy_matcher = fuzzy_matcher or FuzzyMatcher(max_results=max_results)
        self.normalizer = normalizer or TextNormalizer()
        self.escalation_threshold = escalation_threshold
        self.max_results = max_results
        self.fuzzy_corpus_limit = fuzzy_corpus_limit

        # Performance tracking
        self._stats_lock = threading.Lock()
        self._stats = self._empty_stats()

    def search(self, query: Optional[str]) -> SearchResponse:
        """
        Search for images whose recognized text matches ``query``.

        Args:
            query: Free-text query; empty or whitespace-only yields no results

        Returns:
            SearchResponse with at most ``max_results`` ranked results
        """
        start_time = time.time()
        query = query or ""
        normalized = self.normalizer.normalize(query)
        tokens = self.normalizer.tokenize(normalized)

        # Empty queries never touch the store
        if not tokens:
            return self._respond(query, normalized, "none", False, [], start_time)

        degraded = False

        try:
            tier, candidates = self._index_search(normalized, tokens)
        except IndexStoreError as e:
            logger.warning("Index query failed, using fuzzy fallback", query=normalized, error=str(e))
            degraded = True
            tier, candidates = "fuzzy", []

        if tier != "fuzzy" and len(candidates) >= self.escalation_threshold:
            results = [
                self._to_result(record, rank=rank)
                for record, rank in candidates[:self.max_results]
            ]
        else:
            if tier != "fuzzy":
                logger.info(
                    "Too few index results, using fuzzy fallback",
                    query=normalized,
                    tier=tier,
                    candidates=len(candidates),
                )
            tier = "fuzzy"
            results = self._fuzzy_search(normalized)

        return self._respond(query, normalized, tier, degraded, results, start_time)

    def search_records(self, query: Optional[str]) -> List[SearchResult]:
        """Search and return only the ranked results."""
        return self.search(query).results

    def _index_search(self, normalized: str, tokens: List[str]) -> Tuple[str, RankedRecords]:
        """
        Pick the index tier for the query and run it.

        Returns:
            Tuple of (tier, ranked candidates)
        """
        if len(tokens) == 1:
            return "prefix", self.store.query_prefix(tokens[0], limit=self.max_results)

        phrase_results = self.store.query_phrase(normalized, limit=self.max_results)
        if phrase_results:
            return "phrase", phrase_results

        return "or", self.store.query_or(tokens, limit=self.max_results)

    def _fuzzy_search(self, normalized: str) -> List[SearchResult]:
        """Approximate match over the most recent records of the store."""
        corpus = self.store.scan_all(self.fuzzy_corpus_limit)
        if not corpus:
            return []

        matches = self.fuzzy_matcher.find(
            normalized,
            [record.ocr_text or "" for record in corpus],
            limit=self.max_results,
        )

        return [
            self._to_result(corpus[match.matched_index], score=match.score)
            for match in matches
        ]

    @staticmethod
    def _to_result(
        record: ImageRecord,
        rank: Optional[float] = None,
        score: Optional[float] = None,
    ) -> SearchResult:
        return SearchResult(**record.model_dump(), thumbnail=record.thumbnail, rank=rank, score=score)

    def _respond(
        self,
        query: str,
        normalized: str,
        tier: str,
        degraded: bool,
        results: List[SearchResult],
        start_time: float,
    ) -> SearchResponse:
        execution_time = (time.time() - start_time) * 1000

        if tier != "none":
            with self._stats_lock:
                self._stats["total_queries"] += 1
                self._stats["tier_counts"][tier] += 1
                self._stats["total_execution_time"] += execution_time
                if degraded:
                    self._stats["degraded_queries"] += 1

        return SearchResponse(
            query=query,
            normalized_query=normalized,
            tier=tier,
            degraded=degraded,
            total_results=len(results),
            results=results,
            execution_time_ms=execution_time,
        )

    @staticmethod
    def _empty_stats() -> Dict[str, any]:
        return {
            "total_queries": 0,
            "degraded_queries": 0,
            "total_execution_time": 0.0,
            "tier_counts": {tier: 0 for tier in TIERS if tier != "none"},
        }

    def get_stats(self) -> Dict[str, any]:
        """Get engine statistics."""
        with self._stats_lock:
            stats = self._stats.copy()
            stats["tier_counts"] = dict(self._stats["tier_counts"])

        # Calculate averages
        if stats["total_queries"] > 0:
            stats["average_execution_time_ms"] = (
                stats["total_execution_time"] / stats["total_queries"]
            )
            stats["fuzzy_rate"] = stats["tier_counts"]["fuzzy"] / stats["total_queries"]
            stats["degraded_rate"] = stats["degraded_queries"] / stats["total_queries"]
        else:
            stats["average_execution_time_ms"] = 0.0
            stats["fuzzy_rate"] = 0.0
            stats["degraded_rate"] = 0.0

        return stats

    def reset_stats(self) -> None:
        """Reset statistics."""
        with self._stats_lock:
            self._stats = self._empty_stats()
