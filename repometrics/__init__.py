"""
repometrics - Commit-history code growth metrics

This package scans a git repository's history and computes, per commit, non-test
lines of code, Markdown lines, heuristic test-case counts and the rolling
average commit message length, then writes the series as CSV and as an
interactive HTML chart.
"""

# Configuration
from .repometrics_config import (
    RepoMetricsConfig,
    get_config,
    set_config,
)

# Utilities
from .repometrics_helpers import (
    looks_like_url,
    sanitize_repo_for_display,
    sanitize_output_prefix,
    format_duration,
    get_memory_usage,
)

# Classification and counting
from .repometrics_classifier import (
    extension_of,
    classify,
    should_skip_path,
    is_test_path,
)
from .repometrics_counter import (
    BlobMetrics,
    ZERO_METRICS,
    count_code_lines,
    count_doc_lines,
    count_test_cases,
    seems_binary,
    compute_blob_metrics,
)
from .repometrics_blobcache import BlobMetricsCache
from .repometrics_aggregator import CommitMetrics, CommitMetricsAggregator

# Git access
from .repometrics_gitcommands import (
    RepositoryError,
    RepositoryNotFoundError,
    GitCommandError,
    rungit,
    getgitoutput,
    getgitversion,
    get_exectime_external,
    reset_exectime_external,
)
from .repometrics_repository import (
    TreeEntry,
    GitRepository,
    parse_ls_tree,
    make_temp_dir,
    open_repository,
)

# Collection
from .repometrics_collector import (
    CommitRow,
    RunResult,
    RollingAverage,
    MetricsCollector,
    NoCommitsError,
    message_length,
    sample_commits,
)

# Reports
from .repometrics_export import MetricsExporter, export_to_csv, export_to_json, export_to_yaml
from .repometrics_visualization import VisualizationGenerator, generate_visualizations

# CLI
from .repometrics_cli import usage, RepoMetrics, main


__all__ = [
    # Config
    "RepoMetricsConfig",
    "get_config",
    "set_config",

    # Helpers
    "looks_like_url",
    "sanitize_repo_for_display",
    "sanitize_output_prefix",
    "format_duration",
    "get_memory_usage",

    # Classification and counting
    "extension_of",
    "classify",
    "should_skip_path",
    "is_test_path",
    "BlobMetrics",
    "ZERO_METRICS",
    "count_code_lines",
    "count_doc_lines",
    "count_test_cases",
    "seems_binary",
    "compute_blob_metrics",
    "BlobMetricsCache",
    "CommitMetrics",
    "CommitMetricsAggregator",

    # Git access
    "RepositoryError",
    "RepositoryNotFoundError",
    "GitCommandError",
    "rungit",
    "getgitoutput",
    "getgitversion",
    "get_exectime_external",
    "reset_exectime_external",
    "TreeEntry",
    "GitRepository",
    "parse_ls_tree",
    "make_temp_dir",
    "open_repository",

    # Collection
    "CommitRow",
    "RunResult",
    "RollingAverage",
    "MetricsCollector",
    "NoCommitsError",
    "message_length",
    "sample_commits",

    # Reports
    "MetricsExporter",
    "export_to_csv",
    "export_to_json",
    "export_to_yaml",
    "VisualizationGenerator",
    "generate_visualizations",

    # CLI
    "usage",
    "RepoMetrics",
    "main",
]
