"""Read git history into Commit records.

A single ``git log`` process is run per read. Its output uses a custom
format in which fields are separated by one UUID literal and records are
terminated by another, so subjects and bodies may contain anything.
"""

import asyncio
import contextlib
import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import structlog

from git_log_reader.core.exceptions import DecodeFailure, ProcessFailure
from git_log_reader.models.commit import Commit
from git_log_reader.models.options import Options

# Routed through stdlib logging, silent until the application configures it
log = structlog.wrap_logger(
    logging.getLogger(__name__), wrapper_class=structlog.stdlib.BoundLogger
)

FIELD_DELIMITER = "2D863BA3-4154-468C-9016-887EDA5EFBE0"
RECORD_DELIMITER = "058A565D-1650-4BD3-B8B4-42C778C233AF"

# The format string leaves a terminator after the last record
_TRAILING_RECORD = re.compile(re.escape(RECORD_DELIMITER) + r"\r?\n?\Z")

# Strict ISO-8601 committer date as printed by %cI
_ISO_DATE = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}"

# git diagnostics for a HEAD that does not point at a commit yet (LC_ALL=C)
UNBORN_BRANCH_MARKERS = (
    "does not have any commits yet",
    "bad default revision 'HEAD'",
    "ambiguous argument 'HEAD'",
    "bad revision 'HEAD'",
)

GIT_ENV_VAR = "GIT_LOG_READER_GIT"


def git_executable() -> str:
    """Get the git executable, overridable through the environment."""
    return os.environ.get(GIT_ENV_VAR) or "git"


def format_directive(include_hash: bool = False) -> str:
    """Build the ``--format`` argument for the requested fields."""
    placeholders = ["%s", "%cI"]
    if include_hash:
        placeholders.append("%H")
    placeholders.append("%b")
    return f"--format=format:{FIELD_DELIMITER.join(placeholders)}{RECORD_DELIMITER}"


def build_args(options: Options) -> List[str]:
    """Build the git argument list (without the executable) for ``options``."""
    args = ["log", format_directive(options.include_hash)]

    if options.merges is not True:
        args.append("--no-merges")

    args.append(options.range)

    if options.path:
        args.append("--")
        args.extend(options.path)

    return args


def _record_pattern(include_hash: bool) -> "re.Pattern[str]":
    field = re.escape(FIELD_DELIMITER)
    hash_field = f"(?P<hash>[0-9a-fA-F]+){field}" if include_hash else ""
    # Anchored on the date so subject and body may both contain the delimiter
    return re.compile(
        rf"\A(?P<subject>.*?){field}(?P<date>{_ISO_DATE}){field}"
        rf"{hash_field}(?P<body>.*)\Z",
        re.DOTALL,
    )


_RECORD = {False: _record_pattern(False), True: _record_pattern(True)}


def parse_record(chunk: str, include_hash: bool = False) -> Commit:
    """Decode one record chunk into a Commit."""
    match = _RECORD[include_hash].match(chunk)
    if match is None:
        fields = "subject, date, hash, body" if include_hash else "subject, date, body"
        raise DecodeFailure(
            f"git log record does not match the expected fields ({fields})",
            chunk=chunk,
        )

    raw_date = match.group("date")
    try:
        date = datetime.fromisoformat(raw_date)
    except ValueError as e:
        raise DecodeFailure(
            f"Invalid committer date in git log record: {raw_date!r}", chunk=chunk
        ) from e

    return Commit(
        subject=match.group("subject").strip(),
        body=match.group("body").strip(),
        date=date,
        hash=match.group("hash") if include_hash else None,
    )


def parse_output(output: str, include_hash: bool = False) -> List[Commit]:
    """Decode the full ``git log`` output, newest commit first."""
    output = _TRAILING_RECORD.sub("", output, count=1)
    if not output.strip():
        return []

    return [
        parse_record(chunk, include_hash)
        for chunk in output.split(RECORD_DELIMITER)
    ]


class LogReader:
    """Runs ``git log`` and decodes its output.

    Usage:
        commits = await LogReader().read(Options(repo="path/to/repo"))
    """

    def __init__(self, git: Optional[str] = None):
        self.git = git or git_executable()

    async def read(
        self, options: Optional[Options] = None, timeout: Optional[float] = None
    ) -> List[Commit]:
        """Read the commits selected by ``options``.

        Args:
            options: What to read; defaults to the whole HEAD history of cwd
            timeout: Max seconds to wait for git; the process is killed on expiry

        Returns:
            List of commits, newest first

        Raises:
            ProcessFailure: git exited non-zero or could not be started
            DecodeFailure: git output did not match the requested format
            asyncio.TimeoutError: ``timeout`` elapsed
        """
        if options is None:
            options = Options()

        args = build_args(options)
        returncode, stdout, stderr = await self._run(args, options.repo, timeout)

        if returncode != 0:
            if options.uses_default_range and any(
                marker in stderr for marker in UNBORN_BRANCH_MARKERS
            ):
                log.debug("git_log.unborn_branch", repo=str(options.repo or "."))
                return []
            log.info("git_log.failed", returncode=returncode, stderr=stderr.strip())
            raise ProcessFailure(returncode, [self.git, *args], stderr)

        commits = parse_output(stdout, options.include_hash)
        log.debug("git_log.decoded", count=len(commits))
        return commits

    async def _run(
        self, args: List[str], cwd: Optional[Path], timeout: Optional[float]
    ) -> Tuple[int, str, str]:
        command = [self.git, *args]
        env = {**os.environ, "LC_ALL": "C"}

        log.debug("git_log.running", command=command, cwd=str(cwd) if cwd else None)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd is not None else None,
                env=env,
            )
        except OSError as e:
            raise ProcessFailure(-1, command, str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except (asyncio.TimeoutError, asyncio.CancelledError):
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            log.info("git_log.cancelled", command=command, timeout=timeout)
            raise

        try:
            output = stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeFailure(f"git log output is not valid UTF-8: {e}") from e

        return process.returncode, output, stderr.decode("utf-8", errors="replace")


async def read(
    options: Optional[Options] = None,
    *,
    timeout: Optional[float] = None,
    **kwargs,
) -> List[Commit]:
    """Read commits from a repository.

    Either pass an ``Options`` instance or its fields as keyword arguments:

        commits = await read(repo="path/to/repo", merges=True)
    """
    if options is None:
        options = Options(**kwargs)
    elif kwargs:
        raise TypeError("Pass either an Options instance or keyword options, not both")
    return await LogReader().read(options, timeout=timeout)


def read_sync(
    options: Optional[Options] = None,
    *,
    timeout: Optional[float] = None,
    **kwargs,
) -> List[Commit]:
    """Blocking variant of ``read`` for callers without an event loop."""
    return asyncio.run(read(options, timeout=timeout, **kwargs))
