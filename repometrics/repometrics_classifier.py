"""
File classification for repometrics.

Maps repository paths to a category (code, documentation or neither) and to
test / non-test status. Classification looks at the path only, never at content.
"""

import posixpath
from typing import Tuple

from .repometrics_constants import (
    CODE_EXTENSIONS,
    DOC_EXTENSIONS,
    SKIP_DIRECTORIES,
    TEST_DIR_HINTS,
    TEST_FILE_PREFIXES,
    TEST_FILE_SUFFIXES,
)


def extension_of(path: str) -> str:
    """
    Get the lower-case extension of a path, without the dot.

    Dotfiles such as '.gitignore' have no extension.

    Args:
        path: Slash-separated repository path

    Returns:
        Extension string, or '' if the file name has none
    """
    filename = posixpath.basename(path)
    return posixpath.splitext(filename)[1].lower().lstrip('.')


def classify(path: str) -> Tuple[bool, bool]:
    """
    Classify a path as code and/or documentation by its extension.

    Args:
        path: Slash-separated repository path

    Returns:
        Tuple of (is_code, is_doc); at most one of them is True
    """
    ext = extension_of(path)
    if ext in DOC_EXTENSIONS:
        return False, True
    return ext in CODE_EXTENSIONS, False


def should_skip_path(path: str) -> bool:
    """
    Check whether a code path lies inside an ignored directory.

    Build output, dependency and VCS directories hold generated or vendored code.
    Callers apply this to code files only; documentation is counted everywhere.

    Args:
        path: Slash-separated repository path

    Returns:
        True if any segment of the path names an ignored directory
    """
    parts = posixpath.normpath(path).split('/')
    return any(part.lower() in SKIP_DIRECTORIES for part in parts)


def is_test_path(path: str) -> bool:
    """
    Check whether a code path looks like a test file.

    A path is a test path when one of its directories equals or contains a test
    hint word, or when its file name (extension stripped) carries a test prefix
    or suffix.

    Args:
        path: Slash-separated repository path

    Returns:
        True if the path is considered a test file
    """
    parts = path.split('/')
    for directory in parts[:-1]:
        low = directory.lower()
        if any(hint in low for hint in TEST_DIR_HINTS):
            return True

    filename = parts[-1]
    dot = filename.rfind('.')
    base = filename[:dot] if dot >= 0 else filename
    if base.startswith(TEST_FILE_PREFIXES):
        return True
    return base.endswith(TEST_FILE_SUFFIXES)
