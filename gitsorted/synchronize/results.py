"""Contains results of synchronization ticks."""

from datetime import datetime

from gitsorted.schemas.issue import IssueRecord
from gitsorted.synchronize.models import TickOutcome, TickState


class CandidateResult:
    """Contains the side effects attempted for one candidate issue."""

    def __init__(self, record: IssueRecord, internal: bool) -> None:
        """Initialize the result for a candidate; side effects start as not attempted."""
        self.record = record
        self.internal = internal
        self.notified: bool | None = None
        self.commented: bool | None = None


class TickResult:
    """Contains results of one synchronization tick."""

    def __init__(
        self,
        outcome: TickOutcome,
        state: TickState,
        watermark: datetime | None = None,
        tick_time: datetime | None = None,
        candidates: list[CandidateResult] | None = None,
        error: Exception | None = None,
        duration: float = 0.0,
    ) -> None:
        """Initialize the result with the outcome, the state reached and the candidates processed."""
        self.outcome = outcome
        self.state = state
        self.watermark = watermark
        self.tick_time = tick_time
        self.candidates = candidates or []
        self.error = error
        self.duration = duration

    @property
    def batch(self) -> list[IssueRecord]:
        """The records the tick tried to persist, in discovery order."""
        return [candidate.record for candidate in self.candidates]

    @property
    def ok(self) -> bool:
        """Whether the tick ended without an abort or a failed commit."""
        return self.outcome in (TickOutcome.COMMITTED, TickOutcome.NOTHING_NEW)
