# git.py
# Small, focused wrapper around the Git (and GitHub) CLIs.
# All diff retrieval goes through here so attribution code never calls
# subprocess directly and tests only need to patch one function.

from __future__ import annotations

import subprocess
from typing import List, Optional


def _run(args: list[str], cwd: Optional[str] = None) -> str:
    """
    Execute a CLI command and return its stdout as a clean string.

    Args:
        args: Full argument vector (e.g. ["git", "diff", "--name-only", "origin/trunk"])
        cwd: Optional working directory in which to run the command.

    Returns:
        Stdout with surrounding whitespace removed.

    Raises:
        subprocess.CalledProcessError: if the command exits non-zero.
    """
    out = subprocess.check_output(args, cwd=cwd, text=True)
    return out.strip()


def _git(args: list[str], cwd: Optional[str] = None) -> str:
    return _run(["git", *args], cwd=cwd)


def _split_paths(out: str) -> List[str]:
    # No output means no file-level changes
    if not out:
        return []
    return [line for line in out.splitlines() if line]


def changed_files(base_ref: str, cwd: Optional[str] = None) -> List[str]:
    """
    Return the files changed relative to `base_ref`.

    Paths are repo-relative and forward-slash separated, exactly as
    `git diff --name-only` prints them.
    """
    return _split_paths(_git(["diff", "--name-only", base_ref], cwd=cwd))


def pr_changed_files(pr_number: str, cwd: Optional[str] = None) -> List[str]:
    """Return the files changed by a pull request, via `gh pr diff`."""
    return _split_paths(
        _run(["gh", "pr", "diff", str(pr_number), "--name-only"], cwd=cwd)
    )


def diff_file_paths(
    base_ref: str,
    pr_number: Optional[str] = None,
    cwd: Optional[str] = None,
) -> List[str]:
    """
    Return the changed file list for a CI invocation.

    A PR number takes precedence over the base ref.
    """
    if pr_number:
        return pr_changed_files(pr_number, cwd=cwd)
    return changed_files(base_ref, cwd=cwd)
