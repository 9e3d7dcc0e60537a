"""
Per-commit metrics aggregation for repometrics.

Walks one commit's tree, filters and classifies its files, resolves blob
metrics through the shared cache and sums them into commit totals.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .repometrics_blobcache import BlobMetricsCache
from .repometrics_classifier import classify, extension_of, is_test_path, should_skip_path
from .repometrics_config import get_config
from .repometrics_counter import BlobMetrics, compute_blob_metrics


@dataclass(frozen=True)
class CommitMetrics:
    """Totals for one commit."""
    non_test_loc: int = 0
    total_tests: int = 0
    doc_loc: int = 0


# Bucket names for a selected entry
_DOC, _TEST, _CODE = 'doc', 'test', 'code'


class CommitMetricsAggregator:
    """
    Computes CommitMetrics for commits of one repository.

    The repository object must provide list_tree(commit),
    read_blob(sha, max_bytes) and drain_warnings(); GitRepository does. The
    cache is shared across all commits of a run and keyed by (sha, extension).
    """

    def __init__(self, repository, cache: Optional[BlobMetricsCache] = None,
                 max_file_bytes: int = 1_000_000, workers: int = 1):
        self.repository = repository
        self.cache = cache if cache is not None else BlobMetricsCache()
        self.max_file_bytes = max_file_bytes
        self.workers = max(1, workers)
        self._executor: Optional[ThreadPoolExecutor] = None

    def _select_entries(self, commit: str) -> List[Tuple[str, str, str]]:
        """List the blobs of a commit that contribute, with their bucket."""
        selected = []
        for entry in self.repository.list_tree(commit):
            if not entry.is_blob:
                continue
            path = entry.path
            is_code, is_doc = classify(path)
            if not is_code and not is_doc:
                continue
            # vendored/generated code is skipped; docs count everywhere
            if is_code and should_skip_path(path):
                continue
            if entry.size is not None and entry.size > self.max_file_bytes:
                continue

            if is_doc:
                bucket = _DOC
            elif is_test_path(path):
                bucket = _TEST
            else:
                bucket = _CODE
            selected.append((entry.sha, extension_of(path), bucket))
        return selected

    def _blob_metrics(self, sha: str, ext: str) -> BlobMetrics:
        def compute():
            data = self.repository.read_blob(sha, self.max_file_bytes)
            return compute_blob_metrics(data, ext)
        # comment prefixes and test patterns depend on the extension
        return self.cache.get_or_compute((sha, ext), compute)

    def compute_metrics_for_commit(self, commit: str) -> CommitMetrics:
        """
        Compute non-test LOC, test cases and doc lines for one commit.

        Each selected file contributes to exactly one total: documentation adds
        its doc lines, test files add their test cases, other code adds its
        code lines.

        Args:
            commit: Commit hash or revision

        Returns:
            CommitMetrics for the commit

        Raises:
            RepositoryError: If the commit's tree cannot be listed
        """
        selected = self._select_entries(commit)

        if self.workers > 1 and len(selected) > 1:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.workers)
            futures = [
                self._executor.submit(self._blob_metrics, sha, ext)
                for sha, ext, _ in selected
            ]
            resolved = [f.result() for f in futures]
        else:
            resolved = [
                self._blob_metrics(sha, ext)
                for sha, ext, _ in selected
            ]

        # blob warnings are collected by the workers and printed here
        warnings = self.repository.drain_warnings()
        if get_config().verbose:
            for message in warnings:
                print(message)

        non_test_loc = total_tests = doc_loc = 0
        for (_, _, bucket), metrics in zip(selected, resolved):
            if bucket == _DOC:
                doc_loc += metrics.doc_loc
            elif bucket == _TEST:
                total_tests += metrics.test_cases
            else:
                non_test_loc += metrics.code_loc
        return CommitMetrics(non_test_loc=non_test_loc, total_tests=total_tests, doc_loc=doc_loc)

    def close(self) -> None:
        """Shut down the worker pool, if one was started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
