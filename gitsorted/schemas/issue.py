"""Pydantic schemas for issues read from GitHub and records kept in the store."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from gitsorted.utils.timestamps import parse_timestamp


class IssueSummary(BaseModel):
    """An open issue as listed by the issue source."""

    model_config = ConfigDict(frozen=True)

    id: int
    number: int
    created_at: datetime
    title: str
    author: str

    @field_validator("created_at", mode="before")
    @classmethod
    def _normalize_created_at(cls, value: Any) -> datetime:
        return parse_timestamp(value)


class IssueRecord(BaseModel):
    """A tracked issue as persisted in the store, keyed by ``number``.

    ``created_at`` never changes once set. ``last_processed`` is stamped with
    the tick time by every tick that processes the issue.
    """

    id: int
    number: int
    created_at: datetime
    title: str
    author: str
    last_processed: datetime | None = None

    @field_validator("created_at", "last_processed", mode="before")
    @classmethod
    def _normalize_timestamps(cls, value: Any) -> datetime | None:
        if value is None:
            return None
        return parse_timestamp(value)

    @classmethod
    def from_summary(cls, summary: IssueSummary, last_processed: datetime) -> "IssueRecord":
        """Build a record for a freshly discovered issue, stamped with the tick time."""
        return cls(
            id=summary.id,
            number=summary.number,
            created_at=summary.created_at,
            title=summary.title,
            author=summary.author,
            last_processed=last_processed,
        )
