"""Shared minimax score cache handed to every position of a session."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)


class ScoreCache:
    """Additive memo table mapping a position key to its minimax score.

    One instance is shared by reference across every position cloned from the
    same game, so subtrees reached through different move orders are scored
    once. Entries are never evicted or overwritten.
    """

    def __init__(self) -> None:
        self._scores: Dict[Hashable, int] = {}
        # Re-entrant: filling one key recurses into fills of its children.
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._scores)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._scores

    def get(self, key: Hashable) -> Optional[int]:
        return self._scores.get(key)

    def get_or_compute(self, key: Hashable, compute: Callable[[], int]) -> int:
        with self._lock:
            if key in self._scores:
                self.hits += 1
                return self._scores[key]
            self.misses += 1
            score = compute()
            self._scores[key] = score
            logger.debug("cached score %d for %r", score, key)
            return score
