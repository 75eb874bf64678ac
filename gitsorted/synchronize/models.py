"""Internal data models for the synchronization tick."""

from enum import Enum


class TickState(Enum):
    """States a synchronization tick moves through."""

    START = "start"
    READ_WATERMARK = "read_watermark"
    PAGINATE = "paginate"
    FILTER = "filter"
    DISPATCH = "dispatch"
    COMMIT = "commit"
    DONE = "done"
    ABORT = "abort"


class TickOutcome(Enum):
    """How a synchronization tick ended."""

    COMMITTED = "committed"
    NOTHING_NEW = "nothing_new"
    COMMIT_FAILED = "commit_failed"
    ABORTED = "aborted"
    SKIPPED = "skipped"
