"""Commit model for decoded git log records."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Commit(BaseModel):
    """Represents a single commit read from git log."""

    subject: str
    body: str
    date: datetime  # Committer date, timezone-aware
    hash: Optional[str] = None  # Only set when the hash was requested

    model_config = {"frozen": True}
