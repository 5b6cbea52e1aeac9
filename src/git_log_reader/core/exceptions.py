"""Errors raised while reading git history."""

from typing import List, Optional


class GitLogError(Exception):
    """Base class for git-log-reader errors."""


class ProcessFailure(GitLogError):
    """git exited with a non-zero status or could not be started.

    The diagnostic git printed on stderr is kept verbatim in ``stderr``.
    """

    def __init__(self, returncode: int, command: List[str], stderr: str):
        self.returncode = returncode
        self.command = list(command)
        self.stderr = stderr
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"git log failed: {detail}")


class DecodeFailure(GitLogError):
    """git output did not match the requested record format."""

    def __init__(self, message: str, chunk: Optional[str] = None):
        self.chunk = chunk
        super().__init__(message)
