from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

__all__ = ["Envelope"]


class Envelope(BaseModel):
    """The normalized body of every AJAX reply."""

    status: int | str
    data: Any = Field(default_factory=dict)
    error: Any = None
