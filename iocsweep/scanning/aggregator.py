"""Bounded match lists and score totals.

Only retained matches count towards the total; matches past the cap are
dropped, not queued.
"""

from itertools import islice
from typing import Iterable, List, Tuple

from .models import DEFAULT_MAX_MATCHES, Match

# Engine matches carry no score yet; these constants stand in for rule meta.
FILE_PATTERN_SCORE = 60
PROCESS_PATTERN_SCORE = 75


def aggregate(matches: Iterable[Match], limit: int = DEFAULT_MAX_MATCHES) -> Tuple[List[Match], int]:
    """Cap matches at ``limit`` in insertion order and sum the kept scores."""
    if limit < 1:
        raise ValueError("limit must be at least 1")
    kept = list(islice(matches, limit))
    return kept, sum(m.score for m in kept)


class MatchCollector:
    """Incrementally collects matches for one item up to a fixed capacity."""

    def __init__(self, limit: int = DEFAULT_MAX_MATCHES):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._matches: List[Match] = []
        self.dropped = 0

    def add(self, match: Match) -> bool:
        """Append the match; returns False when the list is already full."""
        if self.is_full:
            self.dropped += 1
            return False
        self._matches.append(match)
        return True

    def extend(self, matches: Iterable[Match]) -> None:
        for match in matches:
            self.add(match)

    @property
    def is_full(self) -> bool:
        return len(self._matches) >= self.limit

    @property
    def matches(self) -> List[Match]:
        return list(self._matches)

    @property
    def total_score(self) -> int:
        return sum(m.score for m in self._matches)

    def __len__(self) -> int:
        return len(self._matches)

    def __bool__(self) -> bool:
        return bool(self._matches)
