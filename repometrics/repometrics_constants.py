"""
Classification and heuristic tables for repometrics.

This module centralizes the fixed lookup tables used by the classifier
and the line/test-case counters: which extensions are code or documentation,
which directories hold generated or vendored code, how test files are named,
which single-line comment markers each language uses and which patterns
identify a test case.
"""

import re
from typing import Dict, FrozenSet, List, Pattern, Tuple


# ============================================================================
# FILE CATEGORIES
# ============================================================================
# Extensions are stored lower-case and without the leading dot.

CODE_EXTENSIONS: FrozenSet[str] = frozenset({
    # Python
    'py',

    # JavaScript/TypeScript
    'js', 'jsx', 'ts', 'tsx', 'mjs', 'cjs',

    # Java/JVM languages
    'java', 'kt', 'kts', 'scala',

    # C/C++ family
    'c', 'cc', 'cpp', 'cxx', 'h', 'hh', 'hpp', 'hxx',

    # C#
    'cs',

    # Go, Rust
    'go', 'rs',

    # Swift, Objective-C
    'swift', 'm', 'mm',

    # Ruby, PHP
    'rb', 'php',

    # Shell scripts
    'sh', 'bash', 'zsh',

    # SQL
    'sql',
})

# Documentation is Markdown only, counted anywhere in the tree.
DOC_EXTENSIONS: FrozenSet[str] = frozenset({
    'md', 'markdown', 'mdx',
})


# ============================================================================
# IGNORED DIRECTORIES
# ============================================================================
# Compared case-insensitively against every path segment of code files.

SKIP_DIRECTORIES: FrozenSet[str] = frozenset({
    '.git', 'node_modules', 'vendor', 'third_party',
    'dist', 'build', 'out', 'target', 'bin', 'obj',
    '.venv', 'venv', '__pycache__', 'pods', '.idea', '.vscode',
})


# ============================================================================
# TEST FILE NAMING
# ============================================================================

TEST_DIR_HINTS: Tuple[str, ...] = (
    'test', 'tests', '__tests__', 'spec', 'specs',
    'integration-tests', 'e2e', 'acceptance',
)

TEST_FILE_PREFIXES: Tuple[str, ...] = ('test_', 'spec_')

# Suffixes are case-sensitive: 'FooSpec' and 'FooTests' are tests, 'inspect' is not.
TEST_FILE_SUFFIXES: Tuple[str, ...] = ('_test', '.test', '.spec', 'Spec', 'Tests')


# ============================================================================
# SINGLE-LINE COMMENT PREFIXES
# ============================================================================

_SLASH = ('//',)
_HASH = ('#',)

COMMENT_PREFIXES_BY_EXTENSION: Dict[str, Tuple[str, ...]] = {
    'c': _SLASH, 'cc': _SLASH, 'cpp': _SLASH, 'cxx': _SLASH,
    'h': _SLASH, 'hh': _SLASH, 'hpp': _SLASH, 'hxx': _SLASH,
    'java': _SLASH, 'kt': _SLASH, 'kts': _SLASH, 'scala': _SLASH,
    'js': _SLASH, 'jsx': _SLASH, 'ts': _SLASH, 'tsx': _SLASH,
    'mjs': _SLASH, 'cjs': _SLASH,
    'go': _SLASH, 'rs': _SLASH, 'swift': _SLASH, 'cs': _SLASH,
    'm': _SLASH, 'mm': _SLASH,
    'php': ('//', '#'),
    'py': _HASH, 'rb': _HASH, 'sh': _HASH, 'bash': _HASH, 'zsh': _HASH,
    'sql': ('--',),
}


# ============================================================================
# TEST CASE PATTERNS
# ============================================================================
# Each match of each pattern counts as one test case.

_JS_TESTS = [re.compile(r'\b(?:it|test)\s*\(', re.MULTILINE)]
_JUNIT_TESTS = [
    re.compile(r'@Test\b', re.MULTILINE),
    re.compile(r'@ParameterizedTest\b', re.MULTILINE),
]
_GTEST_TESTS = [re.compile(r'\bTEST(?:_F|_P|_S)?\s*\(', re.MULTILINE)]

TEST_CASE_PATTERNS: Dict[str, List[Pattern[str]]] = {
    # Python (unittest / pytest)
    'py': [
        re.compile(r'^\s*def\s+test_[A-Za-z0-9_]+\s*\(', re.MULTILINE),
        re.compile(r'^\s*class\s+Test[A-Za-z0-9_]*\s*[:(]', re.MULTILINE),
    ],

    # JavaScript/TypeScript (jest, mocha, vitest)
    'js': _JS_TESTS, 'jsx': _JS_TESTS, 'ts': _JS_TESTS, 'tsx': _JS_TESTS,
    'mjs': _JS_TESTS, 'cjs': _JS_TESTS,

    # Java/Kotlin (JUnit)
    'java': _JUNIT_TESTS, 'kt': _JUNIT_TESTS, 'kts': _JUNIT_TESTS,

    # Go
    'go': [re.compile(r'^\s*func\s+Test[A-Z][A-Za-z0-9_]*\s*\(', re.MULTILINE)],

    # Ruby (minitest, rspec)
    'rb': [
        re.compile(r'^\s*def\s+test_[A-Za-z0-9_]+\s*$', re.MULTILINE),
        re.compile(r'^\s*it\s+[\'"]', re.MULTILINE),
    ],

    # Swift (XCTest)
    'swift': [re.compile(r'^\s*func\s+test[A-Z][A-Za-z0-9_]*\s*\(', re.MULTILINE)],

    # C# (xUnit, NUnit)
    'cs': [re.compile(r'\[(?:Fact|Theory|Test|TestCase)\]', re.MULTILINE)],

    # Rust
    'rs': [re.compile(r'#\[test\]', re.MULTILINE)],

    # PHP (PHPUnit)
    'php': [
        re.compile(r'@test\b', re.MULTILINE),
        re.compile(r'^\s*public\s+function\s+test[A-Z]', re.MULTILINE),
    ],

    # C/C++ (GoogleTest)
    'c': _GTEST_TESTS, 'cc': _GTEST_TESTS, 'cpp': _GTEST_TESTS, 'cxx': _GTEST_TESTS,
    'h': _GTEST_TESTS, 'hh': _GTEST_TESTS, 'hpp': _GTEST_TESTS, 'hxx': _GTEST_TESTS,

    # Scala (ScalaTest)
    'scala': _JS_TESTS,

    # SQL (rare test harnesses)
    'sql': [re.compile(r'\bTEST\b', re.MULTILINE | re.IGNORECASE)],
}


def get_comment_prefixes(ext: str) -> Tuple[str, ...]:
    """
    Get the single-line comment prefixes for an extension.

    Args:
        ext: Lower-case extension without the dot (e.g., 'py')

    Returns:
        Tuple of prefixes, empty if the extension has none configured
    """
    return COMMENT_PREFIXES_BY_EXTENSION.get(ext, ())


def get_test_patterns(ext: str) -> List[Pattern[str]]:
    """
    Get the compiled test-case patterns for an extension.

    Args:
        ext: Lower-case extension without the dot (e.g., 'go')

    Returns:
        List of compiled patterns, empty if none are configured
    """
    return TEST_CASE_PATTERNS.get(ext, [])
