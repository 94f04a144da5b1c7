# -*- coding: utf-8 -*-
from __future__ import annotations

import threading
from typing import Dict, List, Optional, Sequence

from .normalizer import normalize, read_lines

# Two files that both normalize to nothing count as identical. This can flag
# untouched stub files; lower it to 0.0 to treat them as unrelated instead.
EMPTY_PAIR_SIMILARITY = 100.0


def similarity(lines_a: Sequence[str], lines_b: Sequence[str]) -> float:
    """Jaccard similarity of the two line sets, as a percentage (0~100)."""
    if not lines_a and not lines_b:
        return EMPTY_PAIR_SIMILARITY
    if not lines_a or not lines_b:
        return 0.0

    set_a = set(lines_a)
    set_b = set(lines_b)
    union = len(set_a | set_b)
    if union == 0:
        return 0.0
    return len(set_a & set_b) / union * 100.0


class NormalizedCache:
    """Per-run memo of normalized file contents, safe to share across threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, List[str]] = {}

    def get(self, path: str) -> List[str]:
        with self._lock:
            cached = self._data.get(path)
        if cached is not None:
            return cached
        # Read outside the lock; a racing duplicate read yields the same value
        lines = normalize(read_lines(path))
        with self._lock:
            self._data.setdefault(path, lines)
        return lines

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


def file_similarity(path_a: str, path_b: str, cache: Optional[NormalizedCache] = None) -> float:
    """Read, normalize and score two files. Raises OSError if either is unreadable."""
    if cache is not None:
        return similarity(cache.get(path_a), cache.get(path_b))
    return similarity(normalize(read_lines(path_a)), normalize(read_lines(path_b)))
