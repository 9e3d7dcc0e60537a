"""
Helper utility functions for repometrics.

Contains small string and process utilities shared by the CLI,
the repository layer and the report writers.
"""

import os
import re
from typing import Optional
from urllib.parse import urlsplit

import psutil


_URL_RE = re.compile(r'^(https?|git)://')
_SCHEME_RE = re.compile(r'^[a-z]+://', re.IGNORECASE)


def looks_like_url(s: str) -> bool:
    """
    Check whether a repository argument should be cloned rather than opened.

    Args:
        s: Repository argument as given on the command line

    Returns:
        True for http(s)/git URLs and anything ending in '.git'
    """
    return bool(_URL_RE.match(s)) or s.endswith('.git')


def sanitize_repo_for_display(s: str) -> str:
    """
    Return a display string for a repository argument.

    Credentials are dropped from URLs and local paths are reduced to their
    basename so reports do not leak the filesystem layout.

    Args:
        s: URL or local path

    Returns:
        Display-safe repository label
    """
    if _SCHEME_RE.match(s) or s.endswith('.git'):
        try:
            parts = urlsplit(s)
            host = parts.hostname or ''
            if parts.port:
                host = '%s:%d' % (host, parts.port)
        except ValueError:
            return re.sub(r'//[^@]+@', '//****@', s)
        if parts.scheme and host:
            return '%s://%s%s' % (parts.scheme, host, parts.path)
        return re.sub(r'//[^@]+@', '//****@', s)
    return os.path.basename(os.path.abspath(s)) or s


def sanitize_output_prefix(prefix: str) -> str:
    """
    Sanitize an output prefix so it cannot write outside the working directory.

    Example:
        sanitize_output_prefix('../etc/passwd') -> 'etc_passwd'

    Args:
        prefix: Requested output prefix

    Returns:
        Safe file name prefix, 'metrics' when nothing usable remains
    """
    if not prefix or not isinstance(prefix, str):
        return 'metrics'
    s = prefix
    while s.startswith('./') or s.startswith('../'):
        s = s[2:] if s.startswith('./') else s[3:]
    segments = [part for part in re.split(r'/+', s) if part]
    joined = '_'.join(segments) or s
    clean = re.sub(r'[^A-Za-z0-9._-]', '_', joined)
    if not clean or clean in ('.', '..'):
        return 'metrics'
    return clean


def get_memory_usage() -> Optional[float]:
    """Get the resident memory of this process in MB. Returns None if unavailable."""
    try:
        return psutil.Process().memory_info().rss / 1024 / 1024
    except psutil.Error:
        return None


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds to a human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "1h 23m 45s")
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.0f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = seconds % 60
        return f"{hours}h {minutes}m {secs:.0f}s"
