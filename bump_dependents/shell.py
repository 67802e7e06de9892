"""Shell, git and gh utilities.

Provides simple wrappers around subprocess calls for running git, the GitHub
CLI and package-manager installers, plus output formatting helpers.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "checkout", "-b", "feature").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise CalledProcessError on non-zero exit.

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd) if cwd else None,
        capture_output=True,
        text=True,
        check=check,
    )
    return result.stdout.strip()


def gh(*args: str, token: str | None = None, check: bool = True) -> str:
    """Run a GitHub CLI command and return stdout.

    The token is handed to gh through GH_TOKEN so it never shows up in the
    process arguments.
    """
    env = {**os.environ, "GH_TOKEN": token} if token else None
    result = subprocess.run(
        ["gh", *args], capture_output=True, text=True, check=check, env=env
    )
    return result.stdout.strip()


def run(
    *args: str, cwd: Path | None = None, check: bool = True
) -> subprocess.CompletedProcess[bytes]:
    """Run an arbitrary shell command.

    Unlike git(), this doesn't capture output - it streams directly to
    the terminal so users can see installer progress.

    Args:
        *args: Command and arguments (e.g., "pnpm", "add", "lodash@4.17.21").
        cwd: Directory to run the command in.
        check: If True (default), raise on non-zero exit.

    Returns:
        CompletedProcess with returncode for checking success.
    """
    return subprocess.run(args, cwd=str(cwd) if cwd else None, check=check)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate packages and repositories in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def info(msg: str) -> None:
    """Print an indented progress line."""
    print(f"  {msg}")


def warn(msg: str) -> None:
    """Print a warning to stderr.

    Warnings mark a failure that was contained: the run carries on with the
    next manifest file or repository.
    """
    print(f"WARNING: {msg}", file=sys.stderr)
