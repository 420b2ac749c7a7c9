"""Approximate matching of queries against recognized text."""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from rapidfuzz.distance import Levenshtein

from .normalizer import TextNormalizer

# Characters that may take part in a match; everything else separates words
WORD_REGEX = re.compile(r"[a-z\d']+")


@dataclass(frozen=True)
class FuzzyMatch:
    """One matched haystack entry."""

    matched_index: int
    score: float
    rank: int


@dataclass(frozen=True)
class TermMatch:
    """Where and how well a single query term matched inside an entry."""

    position: int
    offset: int
    length: int
    edits: int
    word_length: int


class FuzzyMatcher:
    """Matches query terms against haystack text with bounded typos.

    Each term may match a fragment anywhere inside a haystack word, allowing
    at most the configured number of substitutions, transpositions, deletions
    and insertions, and at most ``max_term_edits`` in total. Terms shorter than
    ``min_term_length`` must match exactly.
    """

    def __init__(
        self,
        max_substitutions: int = 1,
        max_transpositions: int = 1,
        max_deletions: int = 1,
        max_insertions: int = 0,
        max_term_edits: int = 2,
        min_term_length: int = 3,
        max_results: int = 100,
    ) -> None:
        """
        Initialize the fuzzy matcher.

        Args:
            max_substitutions: Substituted characters allowed per term
            max_transpositions: Swapped adjacent character pairs allowed per term
            max_deletions: Term characters allowed to be missing from the text
            max_insertions: Extra text characters allowed inside a term match
            max_term_edits: Total edit budget per term
            min_term_length: Shortest term that tolerates any edit
            max_results: Maximum number of matches returned
        """
        self.max_substitutions = max_substitutions
        self.max_transpositions = max_transpositions
        self.max_deletions = max_deletions
        self.max_insertions = max_insertions
        self.max_term_edits = max_term_edits
        self.min_term_length = min_term_length
        self.max_results = max_results
        self.normalizer = TextNormalizer()

    def split_terms(self, text: Optional[str]) -> List[str]:
        """Split text into match terms of the allowed character class."""
        return WORD_REGEX.findall(self.normalizer.normalize(text))

    def find(
        self,
        query: str,
        haystack: Sequence[Optional[str]],
        limit: Optional[int] = None,
    ) -> List[FuzzyMatch]:
        """
        Find the haystack entries that approximately contain the query.

        Terms are first required to appear in query order; if no entry
        matches that way, the search is repeated allowing any order.

        Args:
            query: Search query
            haystack: Text per entry; None is treated as empty
            limit: Maximum number of matches (uses max_results if None)

        Returns:
            Matches sorted by score (descending) then index (ascending)
        """
        terms = self.split_terms(query)
        if not terms or not haystack:
            return []

        limit = self.max_results if limit is None else limit
        entries = [self.split_terms(text) for text in haystack]
        cache: Dict[Tuple[str, str], Optional[Tuple[int, int, int]]] = {}

        scored = self._score_entries(terms, entries, in_order=True, cache=cache)
        if not scored:
            scored = self._score_entries(terms, entries, in_order=False, cache=cache)

        scored.sort(key=lambda item: (-item[1], item[0]))

        return [
            FuzzyMatch(matched_index=index, score=score, rank=rank)
            for rank, (index, score) in enumerate(scored[:limit], start=1)
        ]

    def match_term(self, term: str, word: str) -> Optional[Tuple[int, int, int]]:
        """
        Match one term against one word.

        Args:
            term: Query term
            word: Haystack word

        Returns:
            Tuple of (offset, fragment_length, edits) for the best fragment,
            or None when no fragment is within budget
        """
        offset = word.find(term)
        if offset >= 0:
            return offset, len(term), 0

        if len(term) < self.min_term_length:
            return None

        # Levenshtein counts a transposition as two edits
        cutoff = self.max_term_edits + self.max_transpositions
        shortest = max(1, len(term) - self.max_deletions)
        longest = len(term) + self.max_insertions

        best: Optional[Tuple[int, int, int]] = None
        for length in range(shortest, min(longest, len(word)) + 1):
            for start in range(len(word) - length + 1):
                fragment = word[start:start + length]
                if Levenshtein.distance(term, fragment, score_cutoff=cutoff) > cutoff:
                    continue

                edits = self._edit_cost(term, fragment)
                if edits is None:
                    continue

                if best is None or (edits, start, length) < (best[2], best[0], best[1]):
                    best = (start, length, edits)

        return best

    def _edit_cost(self, term: str, fragment: str) -> Optional[int]:
        """Total edits turning ``term`` into ``fragment`` if every budget holds."""
        variants = [(term, 0)]
        if self.max_transpositions > 0:
            for i in range(len(term) - 1):
                if term[i] != term[i + 1]:
                    swapped = term[:i] + term[i + 1] + term[i] + term[i + 2:]
                    variants.append((swapped, 1))

        best: Optional[int] = None
        for variant, transpositions in variants:
            counts = {"replace": 0, "delete": 0, "insert": 0}
            for op in Levenshtein.editops(variant, fragment):
                counts[op.tag] += 1

            if (
                counts["replace"] > self.max_substitutions
                or counts["delete"] > self.max_deletions
                or counts["insert"] > self.max_insertions
            ):
                continue

            total = transpositions + sum(counts.values())
            if total <= self.max_term_edits and (best is None or total < best):
                best = total

        return best

    def _score_entries(
        self,
        terms: List[str],
        entries: List[List[str]],
        in_order: bool,
        cache: Dict[Tuple[str, str], Optional[Tuple[int, int, int]]],
    ) -> List[Tuple[int, float]]:
        """Score every entry in which all terms match; others are dropped."""
        scored = []
        for index, words in enumerate(entries):
            if not words:
                continue

            if in_order:
                matches = self._match_in_order(terms, words, cache)
            else:
                matches = self._match_any_order(terms, words, cache)

            if matches is not None:
                scored.append((index, self._score(terms, matches)))

        return scored

    def _match_in_order(self, terms, words, cache) -> Optional[List[TermMatch]]:
        """
        Match terms at increasing word positions, each at its best word.

        A backward pass finds the latest word each term can take while every
        later term still fits after it. Each term then takes its best-scoring
        word between the previous term's word and that latest position.
        """
        latest = []
        bound = len(words)
        for term in reversed(terms):
            candidate = bound - 1
            while candidate >= 0 and self._cached_match(term, words[candidate], cache) is None:
                candidate -= 1
            if candidate < 0:
                return None
            latest.append(candidate)
            bound = candidate
        latest.reverse()

        matches = []
        position = -1
        for term, last in zip(terms, latest):
            found = None
            for candidate in range(position + 1, last + 1):
                result = self._cached_match(term, words[candidate], cache)
                if result is None:
                    continue
                match = self._term_match(candidate, words[candidate], result)
                if found is None or self._term_score(term, match) > self._term_score(term, found):
                    found = match

            matches.append(found)
            position = found.position

        return matches

    def _match_any_order(self, terms, words, cache) -> Optional[List[TermMatch]]:
        """Match each term at its best word, wherever it appears."""
        matches = []
        for term in terms:
            found = None
            for candidate, word in enumerate(words):
                result = self._cached_match(term, word, cache)
                if result is None:
                    continue
                match = self._term_match(candidate, word, result)
                if found is None or self._term_score(term, match) > self._term_score(term, found):
                    found = match

            if found is None:
                return None
            matches.append(found)

        return matches

    def _cached_match(self, term, word, cache) -> Optional[Tuple[int, int, int]]:
        key = (term, word)
        if key not in cache:
            cache[key] = self.match_term(term, word)
        return cache[key]

    @staticmethod
    def _term_match(position: int, word: str, result: Tuple[int, int, int]) -> TermMatch:
        offset, length, edits = result
        return TermMatch(
            position=position,
            offset=offset,
            length=length,
            edits=edits,
            word_length=len(word),
        )

    @staticmethod
    def _term_score(term: str, match: TermMatch) -> float:
        """
        Relevance of one term match in (0, 1]: fewer edits, matches at the
        start of a word and matches covering more of the word all score higher.
        """
        accuracy = 1.0 - match.edits / (len(term) + 1)
        boundary = 1.0 if match.offset == 0 else 0.85
        coverage = 0.75 + 0.25 * (match.length / match.word_length)
        return accuracy * boundary * coverage

    @classmethod
    def _score(cls, terms: List[str], matches: List[TermMatch]) -> float:
        """Mean relevance of the term matches."""
        total = sum(cls._term_score(term, match) for term, match in zip(terms, matches))
        return round(total / len(terms), 6)
