"""Data models for git-log-reader."""

from .commit import Commit
from .options import Options

__all__ = ["Commit", "Options"]
