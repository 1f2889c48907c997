"""Shell and git utilities.

Provides a thin wrapper around subprocess for git commands, plus output
formatting helpers shared by the check run and the CLI.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import TextIO


def git(*args: str, cwd: Path | str | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "merge-base", "HEAD", "main").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail.

    Returns:
        Stripped stdout from the git command.

    Raises:
        subprocess.CalledProcessError: If check is True and git fails. The
            exception carries the captured stdout and stderr.
    """
    result = subprocess.run(
        ["git", *args], capture_output=True, text=True, check=check, cwd=cwd
    )
    return result.stdout.strip()


def plural(count: int, singular: str, plural_form: str) -> str:
    """Pick the singular or plural word for a count."""
    return singular if count == 1 else plural_form


def step(msg: str, file: TextIO | None = None) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of a check run in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}", file=file or sys.stdout)


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable setup errors (bad config, unreadable manifest).
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
