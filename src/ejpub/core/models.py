"""Canonical Editor.js document models produced by parse and consumed by render and teaser"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class Block(BaseModel):
    """One typed unit of content; type is an open set, data is type-specific."""
    type: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class Document(BaseModel):
    """An ordered sequence of blocks plus advisory schema metadata."""
    time:    Optional[int] = None       # ms since epoch, set by the editing client
    version: Optional[str] = None       # Editor.js schema tag, e.g. "2.0.0"
    blocks:  list[Block] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.blocks
