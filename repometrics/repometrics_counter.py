"""
Line and test-case counting heuristics for repometrics.

All counters are leading-token or regex heuristics. Trailing comments, block
comments and commented-out tests are not recognized, so results are estimates.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from .repometrics_constants import get_comment_prefixes, get_test_patterns


_LINE_SPLIT = re.compile(r'\r?\n')


@dataclass(frozen=True)
class BlobMetrics:
    """Counts derived from one blob's content."""
    code_loc: int = 0    # non-empty lines not starting with a comment marker
    test_cases: int = 0  # test-case pattern matches for the extension
    doc_loc: int = 0     # non-empty lines


ZERO_METRICS = BlobMetrics()


def _split_lines(text: str) -> List[str]:
    return _LINE_SPLIT.split(text)


def count_code_lines(text: Optional[str], ext: str) -> int:
    """
    Count lines that are neither blank nor start with a single-line comment marker.

    Args:
        text: File content, or None when it could not be read
        ext: Lower-case extension without the dot

    Returns:
        Number of code lines
    """
    if not text:
        return 0
    prefixes = get_comment_prefixes(ext)
    count = 0
    for line in _split_lines(text):
        stripped = line.strip()
        if not stripped:
            continue
        if prefixes and stripped.startswith(prefixes):
            continue
        count += 1
    return count


def count_doc_lines(text: Optional[str]) -> int:
    """Count non-blank lines."""
    if not text:
        return 0
    return sum(1 for line in _split_lines(text) if line.strip())


def count_test_cases(text: Optional[str], ext: str) -> int:
    """
    Count test-case pattern matches for the extension.

    Args:
        text: File content, or None when it could not be read
        ext: Lower-case extension without the dot

    Returns:
        Total number of non-overlapping matches over all patterns
    """
    if not text:
        return 0
    return sum(len(pattern.findall(text)) for pattern in get_test_patterns(ext))


def seems_binary(data: bytes) -> bool:
    """NUL byte heuristic."""
    return b'\x00' in data


def compute_blob_metrics(data: Optional[bytes], ext: str) -> BlobMetrics:
    """
    Compute the metrics of a blob from its raw bytes.

    All three counts are computed whatever the path category; callers pick the
    field for their bucket. Missing or binary content resolves to ZERO_METRICS
    without running any counter.

    Args:
        data: Raw blob bytes, or None when unreadable or oversized
        ext: Lower-case extension without the dot

    Returns:
        BlobMetrics for the content
    """
    if data is None or seems_binary(data):
        return ZERO_METRICS
    text = data.decode('utf-8', errors='replace')
    if not text:
        return ZERO_METRICS
    return BlobMetrics(
        code_loc=count_code_lines(text, ext),
        test_cases=count_test_cases(text, ext),
        doc_loc=count_doc_lines(text),
    )
