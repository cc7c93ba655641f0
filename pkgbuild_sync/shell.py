"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running external tools
and git operations, plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(*args: str, cwd: Path | str | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise CalledProcessError on non-zero exit.

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def run(
    *args: str, cwd: Path | str | None = None, capture: bool = False
) -> subprocess.CompletedProcess[bytes]:
    """Run an external command in a directory.

    By default output is not captured: the child inherits the terminal so
    the operator can watch progress and answer prompts. With capture=True,
    stdout is collected for the caller and stderr is echoed to our stderr.

    Never raises on a non-zero exit; callers inspect returncode. Raises
    OSError if the program cannot be started.
    """
    if not capture:
        return subprocess.run(args, cwd=cwd)
    result = subprocess.run(args, cwd=cwd, capture_output=True)
    if result.stderr:
        sys.stderr.write(result.stderr.decode(errors="replace"))
    return result


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate packages in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def error(msg: str) -> None:
    """Print an error message to stderr."""
    print(f"ERROR: {msg}", file=sys.stderr)
