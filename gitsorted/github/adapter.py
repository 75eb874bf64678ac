"""GitHub issue source adapter for the githubkit library."""

from functools import wraps
from typing import Any, Awaitable, Callable, Self, TypeVar

import httpx
import structlog
from githubkit import GitHub, Response
from githubkit.auth import TokenAuthStrategy
from githubkit.exception import GitHubException, RequestFailed
from githubkit.utils import UNSET
from githubkit.versions.latest.models import Issue, IssueComment
from pydantic import ValidationError

from gitsorted.exceptions import AuthError, ParseError, TransportError
from gitsorted.schemas.issue import IssueSummary
from gitsorted.utils.constants import DEFAULT_GITHUB_API_URL, DEFAULT_PAGE_SIZE, DEFAULT_REQUEST_TIMEOUT, GHOST_AUTHOR
from gitsorted.utils.github import issue_web_url

from .abc import IssuePage, IssueSourceBase
from .client import get_github_client

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def translate_github_errors(func: F) -> F:
    """Decorator translating githubkit, httpx and pydantic failures into the application's error types."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except RequestFailed as exc:
            status_code = exc.response.status_code
            logger.error("GitHub request failed", function=func.__name__, status_code=status_code)
            if status_code in (401, 403):
                raise AuthError(f"GitHub rejected the credential in {func.__name__} (status {status_code})") from exc
            raise TransportError(f"GitHub request failed in {func.__name__} (status {status_code})") from exc
        except (GitHubException, httpx.HTTPError) as exc:
            logger.error("GitHub request did not complete", function=func.__name__, error=str(exc), error_type=type(exc).__name__)
            raise TransportError(f"GitHub request did not complete in {func.__name__}: {exc}") from exc
        except ValidationError as exc:
            logger.error("GitHub returned a malformed payload", function=func.__name__, error=str(exc))
            raise ParseError(f"Malformed GitHub payload in {func.__name__}: {exc}") from exc

    return wrapper  # type: ignore


def _has_next_page(response: Response[Any]) -> bool:
    link_header = response.headers.get("link") or ""
    return any('rel="next"' in part for part in link_header.split(","))


class GitHubKitAdapter(IssueSourceBase):
    """Reads open issues from one repository and comments on them through githubkit."""

    def __init__(
        self,
        client: GitHub[TokenAuthStrategy],
        owner: str,
        repo_name: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        github_api_url: str = DEFAULT_GITHUB_API_URL,
    ) -> None:
        """Initialize the adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name
        self.page_size = page_size
        self.github_api_url = github_api_url

    @classmethod
    def create(
        cls,
        github_token: str,
        owner: str,
        repo_name: str,
        github_api_url: str = DEFAULT_GITHUB_API_URL,
        page_size: int = DEFAULT_PAGE_SIZE,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> Self:
        """Create a new adapter with a token-authenticated client."""
        logger.info(
            "Creating client for GitHub instance and repository",
            github_api_url=github_api_url,
            owner=owner,
            repo_name=repo_name,
        )
        client = get_github_client(github_token=github_token, github_api_url=github_api_url, timeout=request_timeout)
        return cls(client, owner, repo_name, page_size=page_size, github_api_url=github_api_url)

    @staticmethod
    def _to_summary(issue: Issue) -> IssueSummary:
        author = issue.user.login if issue.user else GHOST_AUTHOR
        return IssueSummary(
            id=issue.id,
            number=issue.number,
            created_at=issue.created_at,
            title=issue.title,
            author=author,
        )

    @translate_github_errors
    async def fetch_page(self, cursor: int | None = None) -> IssuePage:
        """Fetch one page of open issues, newest-created first.

        The cursor is the 1-based page number. The issues endpoint also lists
        pull requests; those are dropped from the returned items.
        """
        page = cursor or 1
        response: Response[list[Issue]] = await self.client.rest.issues.async_list_for_repo(
            owner=self.owner,
            repo=self.repo_name,
            state="open",
            sort="created",
            direction="desc",
            per_page=self.page_size,
            page=page,
        )
        raw_issues: list[Issue] = response.parsed_data
        items = [
            self._to_summary(issue)
            for issue in raw_issues
            if getattr(issue, "pull_request", None) in (None, UNSET)
        ]
        next_cursor = page + 1 if raw_issues and _has_next_page(response) else None
        logger.debug(
            "Fetched page of open issues",
            page=page,
            raw_count=len(raw_issues),
            issue_count=len(items),
            has_next_page=next_cursor is not None,
        )
        return IssuePage(items=items, next_cursor=next_cursor)

    @translate_github_errors
    async def post_comment(self, issue_number: int, body: str) -> bool:
        """Post a comment on an issue."""
        response: Response[IssueComment] = await self.client.rest.issues.async_create_comment(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            body=body,
        )
        return 200 <= response.status_code < 300

    def issue_url(self, issue_number: int) -> str:
        """Return the browser URL of an issue in this repository."""
        return issue_web_url(self.github_api_url, self.owner, self.repo_name, issue_number)
