"""Contains the incremental synchronization of newly opened GitHub issues."""

import time
from datetime import datetime
from typing import AsyncIterator, Callable

import jinja2
import structlog

from gitsorted.exceptions import GitSortedError, PersistenceError
from gitsorted.github.abc import IssueSourceBase
from gitsorted.notify.slack import SlackNotifier
from gitsorted.persistence.postgrest import PostgrestIssueStore
from gitsorted.schemas.issue import IssueRecord, IssueSummary
from gitsorted.synchronize.models import TickOutcome, TickState
from gitsorted.synchronize.results import CandidateResult, TickResult
from gitsorted.utils.constants import BOOTSTRAP_WATERMARK, DEFAULT_COMMENT_TEMPLATE, DEFAULT_NOTIFICATION_TEMPLATE
from gitsorted.utils.templates import construct_jinja2_template_from_string, render_template_with_model
from gitsorted.utils.timestamps import utc_now

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SyncEngine:
    """Runs one synchronization tick at a time.

    A tick reads the watermark, scans open issues newest-first until the first
    issue at or before the watermark, notifies and comments on every candidate
    whose author is not internal, then upserts the whole batch. Notifications
    and comments are delivered at least once: a failed commit leaves the
    watermark where it was, so the next tick sees the same candidates again.
    """

    def __init__(
        self,
        source: IssueSourceBase,
        notifier: SlackNotifier,
        store: PostgrestIssueStore,
        internal_authors: frozenset[str] = frozenset(),
        comment_template: str = DEFAULT_COMMENT_TEMPLATE,
        notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE,
        template_context: dict[str, str] | None = None,
        bootstrap_watermark: datetime = BOOTSTRAP_WATERMARK,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the engine with its collaborators and message templates."""
        self.source = source
        self.notifier = notifier
        self.store = store
        self.internal_authors = internal_authors
        self.comment_template = construct_jinja2_template_from_string(comment_template)
        self.notification_template = construct_jinja2_template_from_string(notification_template)
        self.template_context = template_context or {}
        self.bootstrap_watermark = bootstrap_watermark
        self.clock = clock

    async def read_watermark(self) -> datetime:
        """Return the ``last_processed`` of the most recently processed record.

        An empty store yields the bootstrap watermark, so the first tick treats
        every open issue created after it as new.
        """
        record = await self.store.latest_processed_record()
        if record is None or record.last_processed is None:
            logger.warning("No processed issues in store, using bootstrap watermark", watermark=self.bootstrap_watermark.isoformat())
            return self.bootstrap_watermark
        logger.info(
            "Read watermark",
            watermark=record.last_processed.isoformat(),
            issue_number=record.number,
            issue_title=record.title,
        )
        return record.last_processed

    async def scan_new_issues(self, watermark: datetime, tick_time: datetime) -> AsyncIterator[IssueSummary]:
        """Yield open issues created after ``watermark``, walking pages newest-first.

        The scan ends entirely at the first issue created at or before the
        watermark; no further page is requested. Issues created after
        ``tick_time`` are left for the next tick, and an issue repeated across
        a page boundary is yielded once.
        """
        seen: set[int] = set()
        cursor: int | None = None
        while True:
            page = await self.source.fetch_page(cursor)
            for issue in page.items:
                if issue.created_at <= watermark:
                    logger.debug("Reached issue at or before watermark, stopping scan", issue_number=issue.number)
                    return
                if issue.number in seen:
                    continue
                seen.add(issue.number)
                if issue.created_at > tick_time:
                    logger.info("Deferring issue created after tick start", issue_number=issue.number)
                    continue
                yield issue
            if page.next_cursor is None:
                return
            cursor = page.next_cursor

    def is_internal(self, record: IssueRecord) -> bool:
        """Whether the record's author is on the internal authors allowlist."""
        return record.author in self.internal_authors

    def _render(self, template: jinja2.Template, record: IssueRecord, purpose: str) -> str | None:
        """Render a message for one candidate, returning None when the template cannot be rendered."""
        try:
            return render_template_with_model(
                record,
                template,
                issue_url=self.source.issue_url(record.number),
                **self.template_context,
            )
        except Exception as exc:
            # Configured templates may fail in arbitrary ways at render time.
            logger.error("Failed to render template", purpose=purpose, issue_number=record.number, error=str(exc), error_type=type(exc).__name__)
            return None

    async def notify(self, record: IssueRecord) -> bool:
        """Send the chat notification for one candidate; failures are logged, never raised."""
        text = self._render(self.notification_template, record, purpose="notification")
        if text is None:
            return False
        try:
            sent = await self.notifier.send(text)
        except GitSortedError as exc:
            logger.error("Failed to send chat notification", issue_number=record.number, error=str(exc), error_type=type(exc).__name__)
            return False
        if sent:
            logger.info("Sent chat notification", issue_number=record.number)
        else:
            logger.error("Chat notification was not accepted", issue_number=record.number)
        return sent

    async def comment(self, record: IssueRecord) -> bool:
        """Post the acknowledgment comment for one candidate; failures are logged, never raised."""
        body = self._render(self.comment_template, record, purpose="comment")
        if body is None:
            return False
        try:
            posted = await self.source.post_comment(record.number, body)
        except GitSortedError as exc:
            logger.error("Failed to post acknowledgment comment", issue_number=record.number, error=str(exc), error_type=type(exc).__name__)
            return False
        if posted:
            logger.info("Posted acknowledgment comment", issue_number=record.number)
        else:
            logger.error("Acknowledgment comment was not accepted", issue_number=record.number)
        return posted

    def _abort(self, state: TickState, exc: Exception, start_time: float, watermark: datetime | None = None) -> TickResult:
        duration = round(time.monotonic() - start_time, 2)
        logger.error(
            "Aborted synchronization tick, nothing committed",
            state=state.value,
            error=str(exc),
            error_type=type(exc).__name__,
            duration=duration,
        )
        return TickResult(TickOutcome.ABORTED, TickState.ABORT, watermark=watermark, error=exc, duration=duration)

    async def run_tick(self) -> TickResult:
        """Run one tick of the synchronization state machine."""
        start_time = time.monotonic()
        logger.info("Starting synchronization tick")

        # READ_WATERMARK
        try:
            watermark = await self.read_watermark()
        except GitSortedError as exc:
            return self._abort(TickState.READ_WATERMARK, exc, start_time)
        # A single tick time stamps every record; never earlier than the
        # watermark so last_processed cannot move backwards.
        tick_time = max(self.clock(), watermark)

        # PAGINATE
        try:
            new_issues = [issue async for issue in self.scan_new_issues(watermark, tick_time)]
        except GitSortedError as exc:
            return self._abort(TickState.PAGINATE, exc, start_time, watermark=watermark)
        logger.info("Found new issues to process", issue_count=len(new_issues), watermark=watermark.isoformat())

        if not new_issues:
            duration = round(time.monotonic() - start_time, 2)
            logger.info("Finished synchronization tick", outcome=TickOutcome.NOTHING_NEW.value, duration=duration)
            return TickResult(TickOutcome.NOTHING_NEW, TickState.DONE, watermark=watermark, tick_time=tick_time, duration=duration)

        # FILTER
        candidates: list[CandidateResult] = []
        for issue in new_issues:
            record = IssueRecord.from_summary(issue, last_processed=tick_time)
            candidates.append(CandidateResult(record, internal=self.is_internal(record)))

        # DISPATCH
        for candidate in candidates:
            if candidate.internal:
                logger.info("Ignoring issue because its author is internal", issue_number=candidate.record.number, author=candidate.record.author)
                continue
            logger.info("Processing issue from external author", issue_number=candidate.record.number, author=candidate.record.author)
            candidate.notified = await self.notify(candidate.record)
            candidate.commented = await self.comment(candidate.record)

        # COMMIT
        batch = [candidate.record for candidate in candidates]
        outcome = TickOutcome.COMMITTED
        error: Exception | None = None
        try:
            await self.store.upsert(batch)
        except PersistenceError as exc:
            outcome = TickOutcome.COMMIT_FAILED
            error = exc
            logger.error(
                "Failed to commit batch, issues will be processed again next tick",
                issue_count=len(batch),
                error=str(exc),
                status_code=exc.status_code,
            )

        duration = round(time.monotonic() - start_time, 2)
        logger.info(
            "Finished synchronization tick",
            outcome=outcome.value,
            issue_count=len(batch),
            notified_count=sum(1 for candidate in candidates if candidate.notified),
            commented_count=sum(1 for candidate in candidates if candidate.commented),
            duration=duration,
        )
        return TickResult(outcome, TickState.DONE, watermark=watermark, tick_time=tick_time, candidates=candidates, error=error, duration=duration)
