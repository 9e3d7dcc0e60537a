"""
Blob metrics cache for repometrics.

Identical file content shares one blob hash across commits and paths, so its
metrics are computed once per run and extension and reused for every later
commit.
"""

import threading
from concurrent.futures import Future
from typing import Callable, Dict, Hashable, Optional

from .repometrics_counter import BlobMetrics


class BlobMetricsCache:
    """
    Run-scoped memoization of BlobMetrics keyed by blob identity, normally a
    (blob hash, extension) pair.

    Safe for concurrent use: when several threads ask for the same key, one of
    them computes and the others wait for its result. Entries are never evicted.
    """

    def __init__(self):
        self._entries: Dict[Hashable, Future] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Hashable, compute_fn: Callable[[], BlobMetrics]) -> BlobMetrics:
        """
        Return the cached metrics for a blob, computing them on first request.

        Args:
            key: Blob identity
            compute_fn: Called without arguments to produce the metrics on a miss

        Returns:
            BlobMetrics for the blob

        Raises:
            Exception: Whatever compute_fn raised; the key is left uncached
        """
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future
                self.misses += 1
            else:
                self.hits += 1

        if not owner:
            return future.result()

        try:
            metrics = compute_fn()
        except BaseException as e:
            with self._lock:
                del self._entries[key]
            future.set_exception(e)
            raise
        future.set_result(metrics)
        return metrics

    def get(self, key: Hashable) -> Optional[BlobMetrics]:
        """Get completed metrics for a blob without computing, or None."""
        with self._lock:
            future = self._entries.get(key)
        if future is None or not future.done() or future.exception() is not None:
            return None
        return future.result()

    def clear(self) -> None:
        """Drop all entries and reset the counters."""
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
