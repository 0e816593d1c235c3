"""Pagination and date-window value types."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    """A cursor position plus page size to forward to a list endpoint."""

    cursor: str | None
    limit: int


@dataclass
class PageResult(Generic[T]):
    """One page of a list endpoint.

    ``next_cursor`` is None if and only if no further page exists.
    """

    items: list[T]
    next_cursor: str | None = None

    @property
    def has_more(self) -> bool:
        """Whether the remote reported another page."""
        return self.next_cursor is not None


@dataclass
class ExhaustiveResult(Generic[T]):
    """Every page of a result set concatenated in cursor-chain order.

    Has no cursor: pagination was consumed internally.
    """

    items: list[T] = field(default_factory=list)
    pages: int = 0

    @property
    def next_cursor(self) -> None:
        return None

    @property
    def has_more(self) -> bool:
        return False


@dataclass(frozen=True)
class DateWindow:
    """An absolute UTC instant range covering full local calendar days."""

    since_utc: str
    until_utc: str
