"""Custom exceptions for taskq."""


class TaskqError(Exception):
    """Base exception for taskq errors."""

    pass


class ConfigError(TaskqError):
    """Raised when configuration is missing or invalid."""

    pass


class ValidationError(TaskqError):
    """Raised when arguments combine facets that cannot be used together.

    Always raised before any remote call is made.
    """

    pass


class NotFoundError(TaskqError):
    """Raised when an identifier cannot be resolved to a record."""

    def __init__(self, identifier: str, kind: str = "user", suggestions: list[str] | None = None) -> None:
        self.identifier = identifier
        self.kind = kind
        self.suggestions = suggestions or []
        msg = f"No {kind} found matching '{identifier}'"
        if self.suggestions:
            msg += "\n\nDid you mean?\n  - " + "\n  - ".join(self.suggestions)
        super().__init__(msg)


class RemoteFailure(TaskqError):
    """Raised when a call to the remote task service fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_tag: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_tag = error_tag
        super().__init__(message)


class InvalidFilterQueryError(RemoteFailure):
    """Raised when the remote service rejects a filter query."""

    def __init__(self, query: str, status_code: int | None = None) -> None:
        self.query = query
        super().__init__(
            f"Invalid filter query: {query}",
            status_code=status_code,
            error_tag="INVALID_SEARCH_QUERY",
        )
