"""PostgREST (Supabase) backed issue store.

The store is the only durable state of the service. It answers three
questions: which record was processed most recently (the watermark query),
what is stored (the display listing), and it accepts idempotent upserts keyed
by issue number.
"""

from typing import Any, Sequence

import httpx
import structlog
from pydantic import ValidationError

from gitsorted.exceptions import AuthError, DataInvariantError, ParseError, PersistenceError, TransportError
from gitsorted.schemas.issue import IssueRecord
from gitsorted.utils.constants import DEFAULT_REQUEST_TIMEOUT, DEFAULT_STORE_TABLE

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

LATEST_PROCESSED_QUERY = "latest processed issue"


class PostgrestIssueStore:
    """Issue records persisted in a PostgREST table.

    One instance is shared by the synchronization engine and every read path;
    it holds no per-request state and is not mutated after construction.

    Attributes:
        store_url: PostgREST base URL (for Supabase, ``https://<project>.supabase.co/rest/v1``)
        table: Table holding one row per issue, unique on ``number``
    """

    def __init__(
        self,
        store_url: str,
        api_key: str,
        table: str = DEFAULT_STORE_TABLE,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the store, creating an HTTP client unless one is given."""
        self.store_url = store_url.rstrip("/")
        self.table = table
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(request_timeout))
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }

    async def __aenter__(self) -> "PostgrestIssueStore":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit -- close httpx client."""
        await self.close()

    async def close(self) -> None:
        """Close the httpx client and release connections."""
        await self._client.aclose()

    @property
    def table_url(self) -> str:
        """Full URL of the issue table."""
        return f"{self.store_url}/{self.table}"

    async def _select(self, params: dict[str, str]) -> list[dict[str, Any]]:
        try:
            response = await self._client.get(self.table_url, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"Store request did not complete: {exc}") from exc
        if response.status_code in (401, 403):
            raise AuthError(f"Store rejected the API key (status {response.status_code})")
        if not response.is_success:
            raise TransportError(f"Store query failed (status {response.status_code}): {response.text[:200]}")
        try:
            rows = response.json()
        except ValueError as exc:
            raise ParseError(f"Store returned a non-JSON body: {exc}") from exc
        if not isinstance(rows, list):
            raise ParseError(f"Store returned {type(rows).__name__} where a list of rows was expected")
        return rows

    @staticmethod
    def _parse_rows(rows: list[dict[str, Any]]) -> list[IssueRecord]:
        try:
            return [IssueRecord.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise ParseError(f"Store returned a malformed issue record: {exc}") from exc

    async def latest_processed_record(self) -> IssueRecord | None:
        """Return the record with the greatest ``last_processed``, or None for an empty store.

        Raises:
            DataInvariantError: If the single-row query returns more than one row.
        """
        rows = await self._select(
            {
                "select": "*",
                "last_processed": "not.is.null",
                "order": "last_processed.desc",
                "limit": "1",
            }
        )
        if len(rows) > 1:
            raise DataInvariantError(LATEST_PROCESSED_QUERY, len(rows))
        if not rows:
            return None
        record = self._parse_rows(rows)[0]
        if record.last_processed is None:
            raise ParseError(f"Store returned issue #{record.number} without last_processed")
        return record

    async def list_issues(self) -> list[IssueRecord]:
        """Return every stored record, highest issue number first."""
        rows = await self._select({"select": "*", "order": "number.desc"})
        return self._parse_rows(rows)

    async def ping(self) -> None:
        """Check that the store is reachable and accepts the API key."""
        await self._select({"select": "number", "limit": "1"})

    async def upsert(self, batch: Sequence[IssueRecord]) -> None:
        """Insert or update the whole batch in one request, keyed by issue number.

        Whether a rejected request was partially applied depends on the store;
        callers must not assume atomicity.

        Raises:
            PersistenceError: If the request does not complete or the store rejects it.
        """
        if not batch:
            return None
        payload = [record.model_dump(mode="json") for record in batch]
        headers = {**self._headers, "Prefer": "resolution=merge-duplicates,return=minimal"}
        try:
            response = await self._client.post(self.table_url, params={"on_conflict": "number"}, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise PersistenceError(f"Store upsert did not complete: {exc}") from exc
        if not response.is_success:
            raise PersistenceError(
                f"Store rejected upsert of {len(payload)} issue(s) (status {response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            )
        logger.info("Upserted issue records", table=self.table, issue_count=len(payload), status_code=response.status_code)
        return None
