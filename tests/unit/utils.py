"""In-memory stand-ins for the issue source, chat webhook and store used by unit tests."""

import re
from datetime import datetime, timedelta, timezone

from gitsorted.exceptions import DataInvariantError, PersistenceError, TransportError
from gitsorted.github.abc import IssuePage, IssueSourceBase
from gitsorted.schemas.issue import IssueRecord, IssueSummary

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
"""Reference instant used across engine tests."""


def make_issue(number: int, created_at: datetime, author: str = "ext1", title: str | None = None) -> IssueSummary:
    """Build an issue summary with an id derived from its number."""
    return IssueSummary(
        id=1000 + number,
        number=number,
        created_at=created_at,
        title=title or f"Issue {number}",
        author=author,
    )


def make_record(number: int, created_at: datetime, last_processed: datetime, author: str = "ext1") -> IssueRecord:
    """Build a stored record with an id derived from its number."""
    return IssueRecord(
        id=1000 + number,
        number=number,
        created_at=created_at,
        title=f"Issue {number}",
        author=author,
        last_processed=last_processed,
    )


def mentions_issue(text: str, issue_number: int) -> bool:
    """Whether a message links to the given issue."""
    return re.search(rf"/issues/{issue_number}(?!\d)", text) is not None


class FakeIssueSource(IssueSourceBase):
    """Serves preconfigured pages and records every request."""

    def __init__(self, pages: list[list[IssueSummary]] | None = None) -> None:
        """Initialize the source with pages of issues, newest first."""
        self.pages = pages if pages is not None else [[]]
        self.fetched_cursors: list[int | None] = []
        self.comments: list[tuple[int, str]] = []
        self.page_errors: dict[int, Exception] = {}
        self.failing_comments: set[int] = set()

    async def fetch_page(self, cursor: int | None = None) -> IssuePage:
        self.fetched_cursors.append(cursor)
        page = cursor or 1
        if page in self.page_errors:
            raise self.page_errors[page]
        items = self.pages[page - 1] if page <= len(self.pages) else []
        next_cursor = page + 1 if page < len(self.pages) else None
        return IssuePage(items=list(items), next_cursor=next_cursor)

    async def post_comment(self, issue_number: int, body: str) -> bool:
        self.comments.append((issue_number, body))
        if issue_number in self.failing_comments:
            raise TransportError(f"comment on #{issue_number} failed")
        return True

    def issue_url(self, issue_number: int) -> str:
        return f"https://github.com/acme/widgets/issues/{issue_number}"


class FakeNotifier:
    """Records every message; texts mentioning a failing issue URL are rejected."""

    def __init__(self) -> None:
        """Initialize an empty outbox."""
        self.messages: list[str] = []
        self.failing_issue_numbers: set[int] = set()
        self.raising_issue_numbers: set[int] = set()

    async def send(self, text: str) -> bool:
        self.messages.append(text)
        for number in self.raising_issue_numbers:
            if mentions_issue(text, number):
                raise TransportError(f"webhook unreachable for #{number}")
        return not any(mentions_issue(text, number) for number in self.failing_issue_numbers)

    async def close(self) -> None:
        return None


class FakeIssueStore:
    """Dictionary-backed store keyed by issue number."""

    def __init__(self, records: list[IssueRecord] | None = None) -> None:
        """Initialize the store with existing records."""
        self.records: dict[int, IssueRecord] = {record.number: record for record in records or []}
        self.upsert_calls: list[list[IssueRecord]] = []
        self.fail_next_upserts = 0
        self.read_error: Exception | None = None
        self.extra_rows = 0

    async def latest_processed_record(self) -> IssueRecord | None:
        if self.read_error is not None:
            raise self.read_error
        processed = [record for record in self.records.values() if record.last_processed is not None]
        if self.extra_rows:
            raise DataInvariantError("latest processed issue", len(processed) + self.extra_rows)
        if not processed:
            return None
        return max(processed, key=lambda record: record.last_processed)  # type: ignore[arg-type, return-value]

    async def upsert(self, batch: list[IssueRecord]) -> None:
        self.upsert_calls.append([record.model_copy() for record in batch])
        if self.fail_next_upserts:
            self.fail_next_upserts -= 1
            raise PersistenceError("store rejected upsert", status_code=503)
        for record in batch:
            self.records[record.number] = record.model_copy()

    async def list_issues(self) -> list[IssueRecord]:
        return sorted(self.records.values(), key=lambda record: record.number, reverse=True)

    def max_last_processed(self) -> datetime | None:
        """Return the store-wide watermark, or None for an empty store."""
        stamps = [record.last_processed for record in self.records.values() if record.last_processed is not None]
        return max(stamps) if stamps else None


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now: datetime) -> None:
        """Initialize the clock at ``now``."""
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        """Move the clock forward."""
        self.now = self.now + timedelta(seconds=seconds)
