"""Base ABC for issue sources."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from gitsorted.schemas.issue import IssueSummary


@dataclass(frozen=True)
class IssuePage:
    """One page of open issues, newest-created first."""

    items: list[IssueSummary] = field(default_factory=list)
    next_cursor: int | None = None


class IssueSourceBase(ABC):
    """Base ABC for issue trackers the synchronization engine reads from and comments on."""

    @abstractmethod
    async def fetch_page(self, cursor: int | None = None) -> IssuePage:
        """Fetch one page of open issues, starting at the first page when ``cursor`` is None."""
        pass

    @abstractmethod
    async def post_comment(self, issue_number: int, body: str) -> bool:
        """Post a comment on an issue, returning whether the tracker accepted it."""
        pass

    @abstractmethod
    def issue_url(self, issue_number: int) -> str:
        """Return the browser URL of an issue."""
        pass

    async def close(self) -> None:
        """Release any resources held by the source."""
        return None
