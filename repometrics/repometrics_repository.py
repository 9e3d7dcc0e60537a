"""
Repository access module for repometrics.

Contains the GitRepository history walker (commit listing, tree listing, blob
reading, commit metadata) and the functions that open a local repository or
clone a remote one into a private temporary directory.
"""

import contextlib
import datetime
import os
import shutil
import tempfile
import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .repometrics_gitcommands import (
    GitCommandError,
    RepositoryError,
    RepositoryNotFoundError,
    getgitoutput,
    rungit,
)
from .repometrics_helpers import looks_like_url, sanitize_repo_for_display


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a recursive tree listing at a given commit."""
    mode: str
    type: str  # 'blob', 'tree' or 'commit' (submodule)
    sha: str
    size: Optional[int]
    path: str

    @property
    def is_blob(self) -> bool:
        return self.type == 'blob'


def parse_ls_tree(output: bytes) -> List[TreeEntry]:
    """
    Parse the output of 'git ls-tree -r -l -z'.

    Records look like '<mode> <type> <sha> <size>\\t<path>' and are NUL separated.
    The size column is '-' for submodules.

    Args:
        output: Raw command output

    Returns:
        List of TreeEntry in listing order
    """
    entries = []
    for record in output.split(b'\x00'):
        if not record.strip():
            continue
        tab = record.find(b'\t')
        if tab < 0:
            continue
        meta = record[:tab].decode('ascii', errors='replace').split()
        if len(meta) < 3:
            continue
        path = record[tab + 1:].decode('utf-8', errors='replace')
        size = None
        if len(meta) >= 4 and meta[3].isdigit():
            size = int(meta[3])
        entries.append(TreeEntry(mode=meta[0], type=meta[1], sha=meta[2], size=size, path=path))
    return entries


class GitRepository:
    """
    Read-only access to the history of one git repository.

    All operations run git in the repository directory; nothing changes the
    current working directory, so instances are safe to share between threads.
    Blob read warnings are queued and handed out by drain_warnings() so the
    driver thread prints them.
    """

    def __init__(self, path: str, display_name: Optional[str] = None):
        self.path = path
        self.display_name = display_name or sanitize_repo_for_display(path)
        self._warnings: List[str] = []
        self._warnings_lock = threading.Lock()

    def _warn(self, message: str) -> None:
        with self._warnings_lock:
            self._warnings.append(message)

    def drain_warnings(self) -> List[str]:
        """Return the queued blob warnings and clear the queue."""
        with self._warnings_lock:
            warnings, self._warnings = self._warnings, []
        return warnings

    def resolve_rev(self, branch: Optional[str] = None) -> str:
        """
        Resolve the revision to analyze.

        Args:
            branch: Explicit revision, used as-is when given

        Returns:
            The given branch, else the current branch name, else 'HEAD'
        """
        if branch:
            return branch
        try:
            current = getgitoutput(['rev-parse', '--abbrev-ref', 'HEAD'], self.path).strip()
        except GitCommandError:
            return 'HEAD'
        return current or 'HEAD'

    def list_commits(self, rev: str, first_parent: bool = False, include_merges: bool = False,
                     max_commits: Optional[int] = None) -> List[str]:
        """
        List commit hashes reachable from a revision, oldest first.

        Args:
            rev: Revision to walk from
            first_parent: Follow only the first parent of merges
            include_merges: Keep merge commits in the list
            max_commits: Limit the number of commits (newest ones are kept)

        Returns:
            List of full commit hashes in chronological order

        Raises:
            GitCommandError: If the revision cannot be walked
        """
        args = ['rev-list', '--reverse']
        if not include_merges:
            args.append('--no-merges')
        if first_parent:
            args.append('--first-parent')
        if max_commits:
            args.append('--max-count=%d' % max_commits)
        args.append(rev)
        output = getgitoutput(args, self.path)
        return [line.strip() for line in output.split('\n') if line.strip()]

    def list_tree(self, commit: str) -> List[TreeEntry]:
        """
        List every file in a commit's tree, recursively, with blob sizes.

        Raises:
            GitCommandError: If the tree cannot be listed
        """
        return parse_ls_tree(rungit(['ls-tree', '-r', '-l', '-z', commit], self.path))

    def read_blob(self, sha: str, max_bytes: int) -> Optional[bytes]:
        """
        Read the raw content of a blob.

        Args:
            sha: Blob hash
            max_bytes: Content larger than this is discarded

        Returns:
            Blob bytes, or None if the blob is unreadable or too large
        """
        try:
            data = rungit(['cat-file', 'blob', sha], self.path)
        except RepositoryError as e:
            self._warn(f'Warning: Failed to read blob {sha}: {e}')
            return None
        if len(data) > max_bytes:
            self._warn(f'Warning: Skipping blob {sha} ({len(data)} bytes > {max_bytes})')
            return None
        return data

    def commit_info(self, commit: str) -> Tuple[datetime.datetime, str]:
        """
        Get the committer date and full message of a commit.

        Returns:
            Tuple of (timezone-aware UTC datetime, raw message)
        """
        output = getgitoutput(['show', '-s', '--format=%ct%x00%B', commit], self.path)
        stamp, _, message = output.partition('\x00')
        when = datetime.datetime.fromtimestamp(int(stamp.strip()), tz=datetime.timezone.utc)
        return when, message


def make_temp_dir(prefix: str) -> str:
    """Create a temporary directory readable only by the current user."""
    path = tempfile.mkdtemp(prefix=prefix)
    os.chmod(path, 0o700)
    return path


@contextlib.contextmanager
def open_repository(repo_arg: str, keep_temp: bool = False) -> Iterator[GitRepository]:
    """
    Open a local repository or clone a remote one for the duration of a block.

    Remote repositories are cloned into a private temporary directory that is
    removed on exit unless keep_temp is set.

    Args:
        repo_arg: URL or local path
        keep_temp: Keep the clone directory after the block

    Yields:
        GitRepository for the working copy

    Raises:
        RepositoryError: If the path does not exist or the clone fails
    """
    display_name = sanitize_repo_for_display(repo_arg)

    if not looks_like_url(repo_arg):
        path = os.path.abspath(repo_arg)
        if not os.path.isdir(path):
            home = os.path.expanduser('~')
            masked = '~' + path[len(home):] if path.startswith(home) else path
            raise RepositoryNotFoundError(f'Path does not exist or is not a directory: {masked}')
        yield GitRepository(path, display_name)
        return

    tmp = make_temp_dir('repo_scan_')
    try:
        print(f'Cloning {display_name} ...')
        try:
            rungit(['clone', '--quiet', repo_arg, tmp])
        except GitCommandError as e:
            # stderr may echo credentials from the URL
            raise RepositoryError(f'Failed to clone {display_name} (exit {e.returncode})') from None
        yield GitRepository(tmp, display_name)
    finally:
        if keep_temp:
            print(f'Keeping clone at: {tmp}')
        else:
            shutil.rmtree(tmp, ignore_errors=True)
