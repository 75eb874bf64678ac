"""Errors raised by the clients and the synchronization engine."""


class GitSortedError(Exception):
    """Base class for all synchronization errors."""

    pass


class TransportError(GitSortedError):
    """Raised when a remote service cannot be reached or answers with a failure."""

    pass


class AuthError(GitSortedError):
    """Raised when a remote service rejects the configured credential."""

    pass


class ParseError(GitSortedError):
    """Raised when a remote payload or timestamp cannot be parsed."""

    pass


class DataInvariantError(GitSortedError):
    """Raised when the store returns an unexpected number of rows for a single-row query."""

    def __init__(self, query: str, row_count: int) -> None:
        """Initializes the exception with the offending query and its row count."""
        super().__init__(f"Expected at most one row for {query}, got {row_count}")
        self.query = query
        self.row_count = row_count


class PersistenceError(GitSortedError):
    """Raised when the store rejects an upsert."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initializes the exception with the store's response status, if any."""
        super().__init__(message)
        self.status_code = status_code
