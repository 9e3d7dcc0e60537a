"""
Commit series collector for repometrics.

Contains the MetricsCollector driver that walks the selected commits in order,
aggregates each one and produces the CommitRow series with the rolling
commit message length average.
"""

import datetime
import time
from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional

from .repometrics_aggregator import CommitMetricsAggregator
from .repometrics_blobcache import BlobMetricsCache
from .repometrics_config import get_config
from .repometrics_gitcommands import get_exectime_external, reset_exectime_external
from .repometrics_helpers import format_duration, get_memory_usage


class NoCommitsError(Exception):
	"""Raised when the selected revision and filters leave no commits to process."""

	def __init__(self, rev):
		self.rev = rev
		super().__init__('No commits found for the specified revision: %s' % rev)


@dataclass(frozen=True)
class CommitRow:
	"""One row of the output series: metrics and message length for a commit."""

	timestamp: datetime.datetime  # committer date, UTC
	short_sha: str
	non_test_loc: int
	total_tests: int
	doc_loc: int
	commit_msg_len: int
	commit_msg_len_avg: float

	@property
	def iso_when(self) -> str:
		return self.timestamp.astimezone(datetime.timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


@dataclass
class RunResult:
	"""Everything the report writers need about one run."""
	display_name: str
	rev: str
	msg_avg_window: int
	rows: List[CommitRow] = field(default_factory=list)
	blobs_computed: int = 0
	blob_cache_hits: int = 0
	elapsed: float = 0.0


class RollingAverage:
	"""
	Mean over the last `window` samples, maintained incrementally.

	The running sum gains each new sample and loses the oldest one once the
	window is full.
	"""

	def __init__(self, window):
		self.window = max(1, int(window))
		self._values = deque()
		self._sum = 0

	def add(self, value):
		"""Add a sample and return the current mean."""
		self._values.append(value)
		self._sum += value
		if len(self._values) > self.window:
			self._sum -= self._values.popleft()
		return self._sum / len(self._values)


def message_length(message):
	"""Length of a commit message in characters, trailing whitespace excluded."""
	return len(message.rstrip())


def sample_commits(commits, every):
	"""Keep every `every`-th commit, starting with the first."""
	if every <= 1:
		return list(commits)
	return [c for i, c in enumerate(commits) if i % every == 0]


class MetricsCollector:
	"""Drives a full run over one repository."""

	def __init__(self, repository, config=None, cache: Optional[BlobMetricsCache] = None):
		self.repository = repository
		self.config = config or get_config()
		self.cache = cache if cache is not None else BlobMetricsCache()

	def select_commits(self, rev):
		"""
		List the commits to process for a revision, oldest first.

		Raises:
			NoCommitsError: If nothing is left after filtering and sampling
		"""
		conf = self.config
		commits = self.repository.list_commits(
			rev,
			first_parent=conf.first_parent,
			include_merges=conf.include_merges,
			max_commits=conf.max_commits,
		)
		commits = sample_commits(commits, conf.sample_every)
		if not commits:
			raise NoCommitsError(rev)
		return commits

	def collect(self, rev=None):
		"""
		Compute the CommitRow series for a revision.

		Args:
			rev: Revision to analyze; resolved from the configured branch when None

		Returns:
			RunResult with one row per processed commit

		Raises:
			NoCommitsError: If there are no commits to process
			RepositoryError: If the history or a tree cannot be read
		"""
		conf = self.config
		start = time.time()
		reset_exectime_external()
		if rev is None:
			rev = self.repository.resolve_rev(conf.branch or None)
		commits = self.select_commits(rev)

		window = max(1, conf.msg_avg_window)
		result = RunResult(
			display_name=getattr(self.repository, 'display_name', ''),
			rev=rev,
			msg_avg_window=window,
		)
		rolling = RollingAverage(window)
		interval = max(1, conf.progress_interval)

		initial_memory = get_memory_usage()
		print(f'Processing {len(commits)} commits ...')
		with CommitMetricsAggregator(self.repository, self.cache, conf.max_file_bytes, conf.processes) as aggregator:
			for i, commit in enumerate(commits):
				if i == 0 or (i + 1) % interval == 0:
					print(f'  ... {i + 1}/{len(commits)}')
					self._check_memory_pressure()

				metrics = aggregator.compute_metrics_for_commit(commit)
				when, message = self.repository.commit_info(commit)
				msg_len = message_length(message)

				result.rows.append(CommitRow(
					timestamp=when,
					short_sha=commit[:12],
					non_test_loc=metrics.non_test_loc,
					total_tests=metrics.total_tests,
					doc_loc=metrics.doc_loc,
					commit_msg_len=msg_len,
					commit_msg_len_avg=rolling.add(msg_len),
				))

		result.blobs_computed = self.cache.misses
		result.blob_cache_hits = self.cache.hits
		result.elapsed = time.time() - start

		if conf.verbose:
			print(f'Analyzed {len(result.rows)} commits in {format_duration(result.elapsed)}')
			print(f'  Blob cache: {result.blobs_computed} computed, {result.blob_cache_hits} reused')
			print(f'  Time spent in git: {format_duration(get_exectime_external())}')
			final_memory = get_memory_usage()
			if initial_memory and final_memory:
				print(f'  Memory usage: {final_memory - initial_memory:.1f} MB')

		return result

	def _check_memory_pressure(self):
		"""Warn when the process uses more memory than configured."""
		current_memory = get_memory_usage()
		if current_memory and current_memory > self.config.max_memory_mb:
			if self.config.verbose:
				print(f'Warning: High memory usage detected ({current_memory:.1f} MB, '
					f'{len(self.cache)} cached blobs). Consider --sample-every or -c processes=1.')
			return True
		return False
