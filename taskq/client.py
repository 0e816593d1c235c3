"""Remote task service client.

``TodoistClient`` is the interface the query layer depends on; tests swap
in mocks. ``HttpTodoistClient`` implements it over the REST API with
httpx. List methods return one ``PageResult`` of raw records; they never
paginate on their own except where noted.
"""

import logging
from typing import Any, Protocol

import httpx

from taskq.config import DEFAULT_BASE_URL, Settings
from taskq.exceptions import InvalidFilterQueryError, RemoteFailure
from taskq.models.paging import PageResult
from taskq.models.user import User
from taskq.services.pagination import paginate

logger = logging.getLogger(__name__)

INVALID_SEARCH_QUERY = "INVALID_SEARCH_QUERY"
MAX_PAGE_SIZE = 200

Record = dict[str, Any]


class TodoistClient(Protocol):
    """The remote operations consumed by the handlers."""

    async def get_user(self) -> User: ...

    async def get_tasks(
        self,
        *,
        project_id: str | None = None,
        section_id: str | None = None,
        parent_id: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]: ...

    async def get_task(self, task_id: str) -> Record: ...

    async def get_tasks_by_filter(
        self,
        *,
        query: str,
        lang: str = "en",
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]: ...

    async def get_completed_tasks_by_completion_date(self, **params: Any) -> PageResult[Record]: ...

    async def get_completed_tasks_by_due_date(self, **params: Any) -> PageResult[Record]: ...

    async def get_projects(self, *, cursor: str | None = None, limit: int | None = None) -> PageResult[Record]: ...

    async def get_project(self, project_id: str) -> Record: ...

    async def get_sections(
        self,
        *,
        project_id: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]: ...

    async def add_section(self, *, name: str, project_id: str) -> Record: ...

    async def get_comments(
        self,
        *,
        task_id: str | None = None,
        project_id: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]: ...

    async def get_comment(self, comment_id: str) -> Record: ...

    async def get_collaborators(
        self,
        *,
        project_id: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]: ...

    async def aclose(self) -> None: ...


def _to_page(data: Any) -> PageResult[Record]:
    if isinstance(data, list):
        return PageResult(items=data)
    items = data.get("results")
    if items is None:
        items = data.get("items", [])
    return PageResult(items=list(items), next_cursor=data.get("next_cursor") or None)


def _error_details(response: httpx.Response) -> tuple[str, str | None, Any]:
    try:
        data = response.json()
    except ValueError:
        return (response.text[:200] or f"HTTP {response.status_code}", None, None)
    if not isinstance(data, dict):
        return (str(data)[:200], None, None)
    return (
        data.get("error") or data.get("message") or f"HTTP {response.status_code}",
        data.get("error_tag"),
        data.get("error_code"),
    )


class HttpTodoistClient:
    """TodoistClient over httpx.

    No retries: every transport error or non-2xx response is raised as
    RemoteFailure.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: API token sent as a bearer credential.
            base_url: REST API root.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpTodoistClient":
        """Create a client from settings.

        Raises:
            ConfigError: If no API token is configured.
        """
        return cls(settings.require_token(), base_url=settings.base_url, timeout=settings.timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "HttpTodoistClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        logger.debug("%s %s %s", method, path, params)
        try:
            response = await self._http.request(method, path, params=params or None, json=json)
        except httpx.HTTPError as e:
            raise RemoteFailure(f"Request to {path} failed: {e}") from e

        if response.status_code >= 400:
            message, tag, code = _error_details(response)
            query = params.get("query") or params.get("filter_query")
            if tag == INVALID_SEARCH_QUERY and query:
                raise InvalidFilterQueryError(query, status_code=response.status_code)
            if tag:
                message = f"{message} (tag: {tag}, code: {code})"
            raise RemoteFailure(message, status_code=response.status_code, error_tag=tag)

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def get_user(self) -> User:
        return User.from_api(await self._request("GET", "/user"))

    async def get_tasks(
        self,
        *,
        project_id: str | None = None,
        section_id: str | None = None,
        parent_id: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]:
        data = await self._request(
            "GET",
            "/tasks",
            params={
                "project_id": project_id,
                "section_id": section_id,
                "parent_id": parent_id,
                "cursor": cursor,
                "limit": limit,
            },
        )
        return _to_page(data)

    async def get_task(self, task_id: str) -> Record:
        return await self._request("GET", f"/tasks/{task_id}")

    async def get_tasks_by_filter(
        self,
        *,
        query: str,
        lang: str = "en",
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]:
        data = await self._request(
            "GET",
            "/tasks/filter",
            params={"query": query, "lang": lang, "cursor": cursor, "limit": limit},
        )
        return _to_page(data)

    async def _completed(self, path: str, params: dict[str, Any]) -> PageResult[Record]:
        return _to_page(await self._request("GET", path, params=params))

    async def get_completed_tasks_by_completion_date(self, **params: Any) -> PageResult[Record]:
        """Completed tasks whose completion instant lies in [since, until].

        Accepts ``since``, ``until``, ``project_id``, ``section_id``,
        ``parent_id``, ``workspace_id``, ``filter_query``, ``filter_lang``,
        ``cursor`` and ``limit``.
        """
        return await self._completed("/tasks/completed/by_completion_date", params)

    async def get_completed_tasks_by_due_date(self, **params: Any) -> PageResult[Record]:
        """Completed tasks whose due instant lies in [since, until]."""
        return await self._completed("/tasks/completed/by_due_date", params)

    async def get_projects(self, *, cursor: str | None = None, limit: int | None = None) -> PageResult[Record]:
        return _to_page(await self._request("GET", "/projects", params={"cursor": cursor, "limit": limit}))

    async def get_project(self, project_id: str) -> Record:
        return await self._request("GET", f"/projects/{project_id}")

    async def get_sections(
        self,
        *,
        project_id: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]:
        data = await self._request(
            "GET",
            "/sections",
            params={"project_id": project_id, "cursor": cursor, "limit": limit},
        )
        return _to_page(data)

    async def add_section(self, *, name: str, project_id: str) -> Record:
        return await self._request("POST", "/sections", json={"name": name, "project_id": project_id})

    async def get_comments(
        self,
        *,
        task_id: str | None = None,
        project_id: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]:
        data = await self._request(
            "GET",
            "/comments",
            params={"task_id": task_id, "project_id": project_id, "cursor": cursor, "limit": limit},
        )
        return _to_page(data)

    async def get_comment(self, comment_id: str) -> Record:
        return await self._request("GET", f"/comments/{comment_id}")

    async def get_collaborators(
        self,
        *,
        project_id: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageResult[Record]:
        """Collaborators of one project, or of every shared project.

        Without ``project_id`` all shared projects are walked in order and
        the combined list, de-duplicated by id, is returned as a single
        page with no cursor.
        """
        if project_id is not None:
            data = await self._request(
                "GET",
                f"/projects/{project_id}/collaborators",
                params={"cursor": cursor, "limit": limit},
            )
            return _to_page(data)

        projects = await paginate(
            lambda req: self.get_projects(cursor=req.cursor, limit=req.limit),
            limit=MAX_PAGE_SIZE,
            exhaustive=True,
        )
        seen: dict[str, Record] = {}
        for project in projects.items:
            if not project.get("is_shared"):
                continue
            people = await paginate(
                lambda req, pid=str(project["id"]): self.get_collaborators(project_id=pid, cursor=req.cursor, limit=req.limit),
                limit=limit or MAX_PAGE_SIZE,
                exhaustive=True,
            )
            for person in people.items:
                seen.setdefault(str(person["id"]), person)
        return PageResult(items=list(seen.values()))
