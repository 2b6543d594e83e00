"""Exception hierarchy for gitwrap.

GitwrapError (base)
├── ToolUnavailableError   git executable not found
├── InvocationError        git exited non-zero, failed to start, or timed out
└── ParseError             git output did not have the expected shape
"""

from __future__ import annotations

from typing import Optional


class GitwrapError(Exception):
    """Base exception for all gitwrap errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ToolUnavailableError(GitwrapError):
    """The git executable could not be located."""

    def __init__(self, executable: str) -> None:
        self.executable = executable
        super().__init__(f"Couldn't find '{executable}' on PATH")


class InvocationError(GitwrapError):
    """A git invocation did not succeed.

    ``returncode`` is None when the process never ran (bad working
    directory, exec failure, timeout). ``stderr`` is kept verbatim for
    diagnosis and is never interpreted.
    """

    def __init__(
        self,
        args: list[str],
        cwd: str,
        returncode: Optional[int] = None,
        stderr: str = "",
        reason: str = "",
    ) -> None:
        self.command = list(args)
        self.cwd = cwd
        self.returncode = returncode
        self.stderr = stderr
        cmd = " ".join(args)
        if returncode is None:
            message = f"git {cmd} could not run in {cwd}: {reason or 'unknown error'}"
        else:
            message = f"git {cmd} exited with status {returncode} in {cwd}"
        detail = stderr.strip()
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)


class ParseError(GitwrapError):
    """git output did not match the expected field layout."""

    def __init__(self, message: str, raw: str) -> None:
        self.raw = raw
        super().__init__(f"{message}\n--- raw output ---\n{raw}")
