"""git-log-reader: read git history as typed commit records."""

from git_log_reader.core.exceptions import DecodeFailure, GitLogError, ProcessFailure
from git_log_reader.core.reader import LogReader, read, read_sync
from git_log_reader.models import Commit, Options

__all__ = [
    "Commit",
    "DecodeFailure",
    "GitLogError",
    "LogReader",
    "Options",
    "ProcessFailure",
    "read",
    "read_sync",
]
