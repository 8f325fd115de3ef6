"""Schema of the payload a limit persists in the counter store."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LimitStoreData(BaseModel):
    """Counter state of one limit window.

    Attributes:
        timestamp: UNIX epoch seconds when the window expires.
        hits: Hits recorded in the window so far.
    """

    model_config = ConfigDict(strict=True, extra="ignore")

    timestamp: int
    hits: int = Field(ge=0)
