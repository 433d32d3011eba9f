"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running cargo, git and
gh, plus output formatting helpers.
"""

from __future__ import annotations

import os
import subprocess
import sys
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

TOKEN_ENV = "CRATES_IO_TOKEN"


def git(*args: str, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "tag", "--list").
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail.

    Returns:
        Stripped stdout from the git command.
    """
    print(f"> git {' '.join(args)}", file=sys.stderr)
    result = subprocess.run(["git", *args], capture_output=True, text=True, check=check)
    return result.stdout.strip()


def gh(*args: str, input: str | None = None, check: bool = True) -> str:
    """Run a GitHub CLI command and return stdout.

    Args:
        *args: Arguments to pass to gh (e.g., "release", "create", "v1.0.0").
        input: Text fed to the command's stdin (e.g. for `--notes-file -`).
        check: If True (default), raise on non-zero exit.
    """
    print(f"> gh {' '.join(args)}", file=sys.stderr)
    result = subprocess.run(
        ["gh", *args], input=input, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def run(
    *args: str, check: bool = True, env: Mapping[str, str] | None = None
) -> subprocess.CompletedProcess[bytes]:
    """Run an arbitrary command, streaming its output to the terminal.

    Args:
        *args: Command and arguments (e.g., "cargo", "test", "--workspace").
        check: If True (default), raise on non-zero exit.
        env: Extra environment variables. They are never echoed, so secrets
             such as registry tokens belong here rather than in args.
             `CRATES_IO_TOKEN` itself is never inherited, so build scripts
             and tests can't read it.

    Returns:
        CompletedProcess with returncode for checking success.
    """
    print(f"> {' '.join(args)}", file=sys.stderr)
    full_env = {k: v for k, v in os.environ.items() if k != TOKEN_ENV}
    full_env.update({"CI": "1", **(env or {})})
    return subprocess.run(args, check=check, env=full_env)


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


@contextmanager
def section(name: str) -> Iterator[None]:
    """Group output under a collapsible GitHub Actions log section.

    Prints the section's duration when it ends, even on failure.
    """
    print(f"::group::{name}", flush=True)
    start = time.monotonic()
    try:
        yield
    finally:
        print(f"{name}: {time.monotonic() - start:.2f}s")
        print("::endgroup::", flush=True)


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the pipeline.
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
