# git.py
# Git facts jobsworth needs about the checked-out revision.
# Every git invocation goes through _git(); nothing else in the package
# shells out to git.

from __future__ import annotations

import subprocess
from datetime import datetime, timezone
from typing import Optional, Tuple

from jobsworth.errors import JobsworthError


class GitError(JobsworthError):
    """Raised when the checked-out revision can't be determined."""
    pass


def _git(args: list[str], cwd: Optional[str] = None) -> str:
    """
    Run `git <args>` and return stdout, stripped.

    Args:
        args: List of git arguments (e.g. ["rev-parse", "HEAD"])
        cwd: Repository directory; the process cwd when None.

    Returns:
        Stdout without leading or trailing whitespace.

    Raises:
        GitError: git is missing, or exited non-zero.
    """
    try:
        out = subprocess.check_output(
            ["git", *args],
            cwd=cwd,
            text=True,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError:
        raise GitError("git command not found. Please install Git.") from None
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise GitError(f"git {' '.join(args)} failed (exit={e.returncode}): {stderr}") from e

    return out.strip()


def head_commit(cwd: Optional[str] = None) -> Tuple[str, datetime]:
    """
    Return the full SHA of HEAD and its committer (not author) timestamp in UTC.

    Returns:
        (commit SHA, timezone-aware UTC datetime)
    """
    # %H = full hash, %ct = committer date as a unix timestamp
    out = _git(["log", "-1", "--format=%H %ct", "HEAD"], cwd=cwd)

    try:
        sha, timestamp = out.split()
        committed_at = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    except ValueError:
        raise GitError(f"unexpected output from git log: {out!r}") from None

    return sha, committed_at


class GitCommitResolver:
    """CommitResolver backed by the git checkout in `cwd` (default: current directory)."""

    def __init__(self, cwd: Optional[str] = None):
        self.cwd = cwd

    def current_commit(self) -> Tuple[str, datetime]:
        return head_commit(cwd=self.cwd)
