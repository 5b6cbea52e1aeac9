"""Options model for configuring a git log read."""

from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, field_validator


class Options(BaseModel):
    """Options controlling which commits are read and from where."""

    merges: bool = False
    range: str = "HEAD"
    repo: Optional[Path] = None
    path: Optional[List[str]] = None
    include_hash: bool = False

    model_config = {"frozen": True}

    @field_validator("range", mode="before")
    @classmethod
    def _default_range(cls, value: Optional[str]) -> str:
        # An empty range means the whole history leading to HEAD
        return value or "HEAD"

    @field_validator("path", mode="before")
    @classmethod
    def _normalize_path(
        cls, value: Union[None, str, Path, Sequence[Union[str, Path]]]
    ) -> Optional[List[str]]:
        """Accept a single path filter or an ordered sequence of them."""
        if value is None:
            return None
        if isinstance(value, (str, Path)):
            value = [value]
        # git rejects an empty pathspec, an empty filter means no restriction
        paths = [str(item) for item in value if str(item)]
        return paths or None

    @property
    def uses_default_range(self) -> bool:
        """Check if the read covers the whole history leading to HEAD."""
        return self.range == "HEAD"
