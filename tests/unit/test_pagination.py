"""Unit tests for the pagination adapter."""

import asyncio

import pytest

from taskq.exceptions import RemoteFailure
from taskq.models.paging import ExhaustiveResult, PageRequest, PageResult
from taskq.services.pagination import paginate


class FakeEndpoint:
    """A list endpoint serving fixed pages keyed by cursor."""

    def __init__(self, pages: dict[str | None, PageResult]) -> None:
        self.pages = pages
        self.calls: list[tuple[str | None, int]] = []
        self.requests: list[PageRequest] = []

    async def __call__(self, request: PageRequest) -> PageResult:
        self.requests.append(request)
        self.calls.append((request.cursor, request.limit))
        return self.pages[request.cursor]


@pytest.fixture
def three_pages() -> FakeEndpoint:
    return FakeEndpoint(
        {
            None: PageResult(items=list(range(50)), next_cursor="c1"),
            "c1": PageResult(items=list(range(50, 100)), next_cursor="c2"),
            "c2": PageResult(items=list(range(100, 120))),
        }
    )


class TestPagedMode:
    """Tests for the default single-page mode."""

    def test_single_call_with_given_cursor(self, three_pages: FakeEndpoint) -> None:
        result = asyncio.run(paginate(three_pages, limit=50, cursor="c1"))
        assert three_pages.calls == [("c1", 50)]
        assert result.items == list(range(50, 100))
        assert result.next_cursor == "c2"
        assert result.has_more

    def test_fetcher_receives_page_request(self, three_pages: FakeEndpoint) -> None:
        asyncio.run(paginate(three_pages, limit=25))
        assert three_pages.requests == [PageRequest(cursor=None, limit=25)]

    def test_last_page_has_no_cursor(self, three_pages: FakeEndpoint) -> None:
        result = asyncio.run(paginate(three_pages, limit=50, cursor="c2"))
        assert result.next_cursor is None
        assert not result.has_more


class TestExhaustiveMode:
    """Tests for walking every page."""

    def test_concatenates_every_page(self, three_pages: FakeEndpoint) -> None:
        """50 + 50 + 20 items should come back as 120 in order, without a cursor."""
        result = asyncio.run(paginate(three_pages, limit=50, exhaustive=True))
        assert isinstance(result, ExhaustiveResult)
        assert result.items == list(range(120))
        assert result.pages == 3
        assert result.next_cursor is None
        assert [cursor for cursor, _ in three_pages.calls] == [None, "c1", "c2"]

    def test_caller_cursor_is_ignored(self, three_pages: FakeEndpoint) -> None:
        result = asyncio.run(paginate(three_pages, limit=50, cursor="c2", exhaustive=True))
        assert len(result.items) == 120

    def test_exhaustive_limit_is_page_size(self, three_pages: FakeEndpoint) -> None:
        asyncio.run(paginate(three_pages, limit=10, exhaustive=True, exhaustive_limit=200))
        assert {limit for _, limit in three_pages.calls} == {200}

    def test_single_empty_page(self) -> None:
        endpoint = FakeEndpoint({None: PageResult(items=[])})
        result = asyncio.run(paginate(endpoint, limit=10, exhaustive=True))
        assert result.items == []
        assert result.pages == 1

    def test_failure_aborts_walk(self) -> None:
        """A failing page should propagate instead of returning partial data."""
        calls = []

        async def fetch(request: PageRequest) -> PageResult:
            calls.append(request.cursor)
            if request.cursor == "c1":
                raise RemoteFailure("boom", status_code=500)
            return PageResult(items=[1, 2], next_cursor="c1")

        with pytest.raises(RemoteFailure, match="boom"):
            asyncio.run(paginate(fetch, limit=2, exhaustive=True))
        assert calls == [None, "c1"]

    def test_repeated_cursor_raises(self) -> None:
        endpoint = FakeEndpoint(
            {
                None: PageResult(items=[1], next_cursor="a"),
                "a": PageResult(items=[2], next_cursor="b"),
                "b": PageResult(items=[3], next_cursor="a"),
            }
        )
        with pytest.raises(RemoteFailure, match="cursor repeated: a"):
            asyncio.run(paginate(endpoint, limit=1, exhaustive=True))
