"""Tool handlers.

Each handler validates its arguments, normalizes identifiers, builds the
filter query, fetches through the pagination adapter and renders the
result. Handlers return ``{"text": ..., "structured": ...}``; transports
decide how to present both channels.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from taskq.client import TodoistClient
from taskq.config import Limits
from taskq.exceptions import ValidationError
from taskq.models.project import Comment, Project, Section
from taskq.models.task import Task
from taskq.services.pagination import paginate
from taskq.services.people import (
    ResponsibleUserFiltering,
    assignee_fragment,
    fetch_collaborators,
    filter_tasks_by_responsible_user,
    resolve_responsible_user,
)
from taskq.services.projects import resolve_project_id, resolve_project_ids
from taskq.services.rendering import (
    format_collaborator,
    format_comment,
    format_project,
    format_section,
    format_task,
    render_summary,
)
from taskq.utils.dates import add_days, local_today, normalize_date_window, parse_local_date
from taskq.utils.filters import compose_filter, raw_fragment, text_fragment
from taskq.utils.labels import LabelsOperator, compile_label_filter, describe_labels

logger = logging.getLogger(__name__)

TASK_URL = "https://app.todoist.com/app/task/{id}"
PROJECT_URL = "https://app.todoist.com/app/project/{id}"

MAX_DAYS_COUNT = 30

SORT_FIELDS = ("priority", "due_date", "project", "created", "order", "default")
DEFAULT_SORT_ORDER = {
    "priority": "desc",
    "due_date": "asc",
    "project": "asc",
    "created": "desc",
    "order": "asc",
}


@dataclass
class HandlerContext:
    """Context giving handlers access to the remote client and limits."""

    client: TodoistClient
    limits: Limits = field(default_factory=Limits)


Handler = Callable[[HandlerContext, dict[str, Any]], Awaitable[dict[str, Any]]]


def _result(text: str, structured: dict[str, Any]) -> dict[str, Any]:
    return {"text": text, "structured": structured}


def _labels(params: dict[str, Any]) -> tuple[list[str], LabelsOperator]:
    labels = [label for label in params.get("labels") or [] if label]
    try:
        operator = LabelsOperator(params.get("labelsOperator") or "or")
    except ValueError as e:
        raise ValidationError(f"labelsOperator must be 'and' or 'or', got {params.get('labelsOperator')!r}") from e
    return labels, operator


def _filtering(params: dict[str, Any], default: ResponsibleUserFiltering) -> ResponsibleUserFiltering:
    value = params.get("responsibleUserFiltering")
    if value is None:
        return default
    try:
        return ResponsibleUserFiltering(value)
    except ValueError as e:
        raise ValidationError(f"Unknown responsibleUserFiltering: {value}") from e


def _match_text(tasks: list[Task], text: str) -> list[Task]:
    needle = text.lower()
    return [t for t in tasks if needle in t.content.lower() or needle in t.description.lower()]


def _match_labels(tasks: list[Task], labels: list[str], operator: LabelsOperator) -> list[Task]:
    if not labels:
        return tasks
    wanted = [label.lstrip("@") for label in labels]
    check = all if operator is LabelsOperator.AND else any
    return [t for t in tasks if check(label in t.labels for label in wanted)]


def _task_payload(
    tasks: list[Task],
    next_cursor: str | None,
    params: dict[str, Any],
    **extra: Any,
) -> dict[str, Any]:
    return {
        "tasks": [t.to_output() for t in tasks],
        "nextCursor": next_cursor,
        "totalCount": len(tasks),
        "hasMore": next_cursor is not None,
        "appliedFilters": params,
        **extra,
    }


async def _user_and_assignee(ctx: HandlerContext, responsible_user: str | None):
    """Fetch the profile and resolve the assignee concurrently."""
    return await asyncio.gather(
        ctx.client.get_user(),
        resolve_responsible_user(
            ctx.client,
            responsible_user,
            page_size=ctx.limits.collaborators_page_size,
        ),
    )


# Handler functions


async def handle_find_tasks(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """Find tasks by text, container, assignee or labels.

    Container searches (project, section or parent) list the container
    directly and filter on the client; when ``searchText`` is given the whole
    container is fetched so no match is hidden on a later page. Every other
    combination becomes a single filter query.

    Args:
        ctx: Handler context.
        params: Tool arguments; at least one facet is required.

    Returns:
        Text summary and structured task list.

    Raises:
        ValidationError: If no facet is supplied.
    """
    search_text = params.get("searchText")
    project_id = params.get("projectId")
    section_id = params.get("sectionId")
    parent_id = params.get("parentId")
    responsible_user = params.get("responsibleUser")
    labels, operator = _labels(params)
    filtering = _filtering(params, ResponsibleUserFiltering.UNASSIGNED_OR_ME)
    limit = ctx.limits.tasks.check(params.get("limit"))
    cursor = params.get("cursor")

    if not any([search_text, project_id, section_id, parent_id, responsible_user, labels]):
        raise ValidationError(
            "At least one filter must be provided: searchText, projectId, sectionId, parentId, "
            "responsibleUser, or labels"
        )

    user, resolved = await _user_and_assignee(ctx, responsible_user)
    assignee = resolved.label if resolved else responsible_user
    container = bool(project_id or section_id or parent_id)

    if container:
        resolved_project = await resolve_project_id(project_id, user=user)
        page = await paginate(
            lambda req: ctx.client.get_tasks(
                project_id=resolved_project,
                section_id=section_id,
                parent_id=parent_id,
                cursor=req.cursor,
                limit=req.limit,
            ),
            limit=limit,
            cursor=cursor,
            exhaustive=bool(search_text),
            exhaustive_limit=ctx.limits.tasks.max,
        )
        tasks = [Task.from_api(record) for record in page.items]
        if search_text:
            tasks = _match_text(tasks, search_text)
        tasks = filter_tasks_by_responsible_user(
            tasks, current_user_id=user.id, resolved=resolved, filtering=filtering
        )
        tasks = _match_labels(tasks, labels, operator)
        query = None
    else:
        query = compose_filter(
            text_fragment(search_text),
            compile_label_filter(labels, operator),
            assignee_fragment(resolved, filtering),
        )
        if query is None:
            raise ValidationError("No filter could be built from the given arguments")
        page = await paginate(
            lambda req: ctx.client.get_tasks_by_filter(query=query, cursor=req.cursor, limit=req.limit),
            limit=limit,
            cursor=cursor,
        )
        tasks = [Task.from_api(record) for record in page.items]

    subject, filter_hints, zero_hints = _describe_find_tasks(params, labels, operator, assignee, container)
    rendered = render_summary(
        subject,
        tasks,
        limit=None if container and search_text else limit,
        next_cursor=page.next_cursor,
        filter_hints=filter_hints,
        zero_reason_hints=zero_hints,
        preview_limit=ctx.limits.preview_limit,
        format_item=format_task,
    )
    extra = {"appliedFilter": query} if query else {}
    return _result(rendered.summary, _task_payload(tasks, page.next_cursor, params, **extra))


def _describe_find_tasks(
    params: dict[str, Any],
    labels: list[str],
    operator: LabelsOperator,
    assignee: str | None,
    container: bool,
) -> tuple[str, list[str], list[str]]:
    search_text = params.get("searchText")
    filter_hints: list[str] = []
    zero_hints: list[str] = []
    label_text = describe_labels(labels, operator)

    if container:
        if params.get("projectId"):
            subject = "Tasks in project"
            filter_hints.append(f"in project {params['projectId']}")
            zero_hints.append("No tasks in project match search" if search_text else "Project has no tasks yet")
        elif params.get("sectionId"):
            subject = "Tasks in section"
            filter_hints.append(f"in section {params['sectionId']}")
            zero_hints.append("No tasks in section match search" if search_text else "Section is empty")
        else:
            subject = "Subtasks"
            filter_hints.append(f"subtasks of {params['parentId']}")
            zero_hints.append("No subtasks match search" if search_text else "No subtasks created yet")
        if search_text:
            subject += f' matching "{search_text}"'
            filter_hints.append(f'containing "{search_text}"')
        if assignee:
            subject += f" assigned to {assignee}"
            filter_hints.append(f"assigned to {assignee}")
        if labels:
            filter_hints.append(f"labels: {label_text}")
        return subject, filter_hints, zero_hints

    if search_text:
        subject = f'Search results for "{search_text}"'
        filter_hints.append(f'matching "{search_text}"')
    elif assignee and not labels:
        subject = f"Tasks assigned to {assignee}"
    elif labels and not assignee:
        subject = f"Tasks with labels: {label_text}"
    else:
        subject = f"Tasks assigned to {assignee} with labels: {label_text}"

    if assignee:
        filter_hints.append(f"assigned to {assignee}")
        zero_hints.extend(
            [
                f"No tasks assigned to {assignee}",
                "Check if the user name is correct",
                "Check completed tasks with find-completed-tasks",
            ]
        )
    if labels:
        filter_hints.append(f"labels: {label_text}")
    if search_text:
        zero_hints.extend(["Try broader search terms", "Verify spelling and try partial words"])
        if not assignee:
            zero_hints.append("Check completed tasks with find-completed-tasks")
    return subject, filter_hints, zero_hints


def sort_tasks(tasks: list[Task], sort_by: str | None, sort_order: str | None = None) -> list[Task]:
    """Sort tasks client-side.

    Args:
        tasks: Tasks in remote order.
        sort_by: One of SORT_FIELDS; None or "default" keeps remote order.
        sort_order: "asc" or "desc"; defaults depend on the field.

    Returns:
        A new sorted list. Tasks without a due date always sort last.
    """
    if not sort_by or sort_by == "default":
        return list(tasks)
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"Unknown sortBy: {sort_by}")
    order = sort_order or DEFAULT_SORT_ORDER[sort_by]
    if order not in ("asc", "desc"):
        raise ValidationError(f"sortOrder must be 'asc' or 'desc', got {order!r}")
    descending = order == "desc"

    if sort_by == "priority":
        # "p1" is the highest priority, so descending means ascending digits
        return sorted(tasks, key=lambda t: int(t.priority[1:]), reverse=not descending)
    if sort_by == "due_date":
        dated = sorted((t for t in tasks if t.due_date), key=lambda t: t.due_date, reverse=descending)
        return dated + [t for t in tasks if not t.due_date]
    if sort_by == "project":
        return sorted(tasks, key=lambda t: t.project_id, reverse=descending)
    if sort_by == "created":
        return sorted(tasks, key=lambda t: t.id, reverse=descending)
    return sorted(tasks, key=lambda t: t.order, reverse=descending)


async def handle_find_tasks_by_filter(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """Find tasks with a raw filter query, plus labels and assignee.

    Args:
        ctx: Handler context.
        params: Tool arguments including the required 'filter'.

    Returns:
        Text summary and structured task list including the final query.
    """
    raw_filter = params.get("filter")
    if not raw_filter or not raw_filter.strip():
        raise ValidationError("filter is required")
    labels, operator = _labels(params)
    filtering = _filtering(params, ResponsibleUserFiltering.ALL)
    limit = ctx.limits.tasks.check(params.get("limit"))
    sort_by = params.get("sortBy")
    sort_order = params.get("sortOrder")
    if sort_by and sort_by not in SORT_FIELDS:
        raise ValidationError(f"Unknown sortBy: {sort_by}")

    resolved = await resolve_responsible_user(
        ctx.client,
        params.get("responsibleUser"),
        page_size=ctx.limits.collaborators_page_size,
    )
    query = compose_filter(
        raw_fragment(raw_filter),
        compile_label_filter(labels, operator),
        assignee_fragment(resolved, filtering),
    )
    page = await paginate(
        lambda req: ctx.client.get_tasks_by_filter(query=query, cursor=req.cursor, limit=req.limit),
        limit=limit,
        cursor=params.get("cursor"),
    )
    tasks = sort_tasks([Task.from_api(record) for record in page.items], sort_by, sort_order)

    assignee = resolved.label if resolved else params.get("responsibleUser")
    subject = f'Tasks matching filter "{raw_filter}"'
    filter_hints = [f"query: {query}"]
    if labels:
        filter_hints.append(f"labels: {describe_labels(labels, operator)}")
    if assignee:
        subject += f" assigned to {assignee}"
        filter_hints.append(f"assigned to: {assignee}")
    if sort_by and sort_by != "default":
        filter_hints.append(f"sorted by: {sort_by} ({sort_order or DEFAULT_SORT_ORDER[sort_by]})")

    zero_hints = ["Verify filter syntax is correct", "Try a simpler filter to confirm project/label names"]
    if raw_filter.startswith("##"):
        zero_hints.append("Ensure the parent project exists and has sub-projects")
    elif raw_filter.startswith("#"):
        zero_hints.append("Verify the project name is correct (case-sensitive)")

    rendered = render_summary(
        subject,
        tasks,
        limit=limit,
        next_cursor=page.next_cursor,
        filter_hints=filter_hints,
        zero_reason_hints=zero_hints,
        preview_limit=ctx.limits.preview_limit,
        format_item=format_task,
    )
    return _result(rendered.summary, _task_payload(tasks, page.next_cursor, params, appliedFilter=query))


async def handle_find_tasks_by_date(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """Find tasks due in a range of days, or overdue tasks.

    ``startDate`` accepts YYYY-MM-DD, "today", "overdue" or a natural
    language date. "today" and relative dates use the user's local date.

    Args:
        ctx: Handler context.
        params: Tool arguments including 'startDate' and 'daysCount'.

    Returns:
        Text summary and structured task list.
    """
    start = (params.get("startDate") or "today").strip()
    days_count = params.get("daysCount")
    if days_count is None:
        days_count = 1
    if not 1 <= days_count <= MAX_DAYS_COUNT:
        raise ValidationError(f"daysCount must be between 1 and {MAX_DAYS_COUNT}, got {days_count}")
    labels, operator = _labels(params)
    filtering = _filtering(params, ResponsibleUserFiltering.UNASSIGNED_OR_ME)
    limit = ctx.limits.tasks.check(params.get("limit"))

    user, resolved = await _user_and_assignee(ctx, params.get("responsibleUser"))

    if start == "overdue":
        date_query = "overdue"
        filter_hints = ["overdue tasks only"]
        subject = "Overdue tasks"
        zero_hints = ["Great job! No overdue tasks", "Check today's tasks with startDate='today'"]
    else:
        today = local_today(user.gmt_offset)
        start_day = today if start == "today" else parse_local_date(start, today)
        first = start_day.isoformat()
        end = add_days(start_day, days_count)
        date_query = f"(due after: {first} | due: {first}) & due before: {end}"
        last = add_days(start_day, days_count - 1)
        span = first if days_count == 1 else f"{first} to {last}"
        filter_hints = [f"due {span}"]
        subject = "Tasks due today" if start == "today" and days_count == 1 else f"Tasks due {span}"
        zero_hints = ["Expand date range with larger 'daysCount'", "Check 'overdue' for past-due items"]

    query = compose_filter(
        date_query,
        compile_label_filter(labels, operator),
        assignee_fragment(resolved, filtering),
    )
    if labels:
        filter_hints.append(f"labels: {describe_labels(labels, operator)}")
    if resolved:
        filter_hints.append(f"assigned to: {resolved.label}")

    page = await paginate(
        lambda req: ctx.client.get_tasks_by_filter(query=query, cursor=req.cursor, limit=req.limit),
        limit=limit,
        cursor=params.get("cursor"),
    )
    tasks = [Task.from_api(record) for record in page.items]
    rendered = render_summary(
        subject,
        tasks,
        limit=limit,
        next_cursor=page.next_cursor,
        filter_hints=filter_hints,
        zero_reason_hints=zero_hints,
        preview_limit=ctx.limits.preview_limit,
        format_item=format_task,
    )
    return _result(rendered.summary, _task_payload(tasks, page.next_cursor, params, appliedFilter=query))


async def handle_find_completed_tasks(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """Find completed tasks by completion date or by due date.

    ``since`` and ``until`` are local calendar days; they are converted to a
    UTC window under the user's GMT offset before the remote call.

    Args:
        ctx: Handler context.
        params: Tool arguments including 'since' and 'until'.

    Returns:
        Text summary and structured task list.
    """
    get_by = params.get("getBy") or "completion"
    if get_by not in ("completion", "due"):
        raise ValidationError(f"getBy must be 'completion' or 'due', got {get_by!r}")
    since, until = params.get("since"), params.get("until")
    if not since or not until:
        raise ValidationError("Both since and until are required")
    labels, operator = _labels(params)
    limit = ctx.limits.completed_tasks.check(params.get("limit"))

    user, resolved = await _user_and_assignee(ctx, params.get("responsibleUser"))
    today = local_today(user.gmt_offset)
    window = normalize_date_window(
        parse_local_date(since, today).isoformat(),
        parse_local_date(until, today).isoformat(),
        user.gmt_offset,
    )
    project_id = await resolve_project_id(params.get("projectId"), user=user)
    filter_query = compose_filter(
        compile_label_filter(labels, operator),
        assignee_fragment(resolved, ResponsibleUserFiltering.ALL),
    )

    fetch = (
        ctx.client.get_completed_tasks_by_completion_date
        if get_by == "completion"
        else ctx.client.get_completed_tasks_by_due_date
    )
    page = await paginate(
        lambda req: fetch(
            since=window.since_utc,
            until=window.until_utc,
            project_id=project_id,
            section_id=params.get("sectionId"),
            parent_id=params.get("parentId"),
            workspace_id=params.get("workspaceId"),
            filter_query=filter_query,
            filter_lang="en" if filter_query else None,
            cursor=req.cursor,
            limit=req.limit,
        ),
        limit=limit,
        cursor=params.get("cursor"),
    )
    tasks = [Task.from_api(record) for record in page.items]

    by_text = "completed" if get_by == "completion" else "due"
    filter_hints = [f"{by_text} date: {since} to {until}"]
    for key, name in (("projectId", "project"), ("sectionId", "section"), ("parentId", "parent"), ("workspaceId", "workspace")):
        if params.get(key):
            filter_hints.append(f"{name}: {params[key]}")
    if labels:
        filter_hints.append(f"labels: {describe_labels(labels, operator)}")
    if resolved:
        filter_hints.append(f"assigned to: {resolved.label}")

    zero_hints = ["No tasks completed in this date range", "Try expanding the date range"]
    if params.get("projectId") or params.get("sectionId") or params.get("parentId"):
        zero_hints.append("Try removing project/section/parent filters")
    if get_by == "due":
        zero_hints.append('Try switching to "completion" date instead')

    rendered = render_summary(
        f"Completed tasks (by {by_text} date)",
        tasks,
        limit=limit,
        next_cursor=page.next_cursor,
        filter_hints=filter_hints,
        zero_reason_hints=zero_hints,
        preview_limit=ctx.limits.preview_limit,
        format_item=format_task,
    )
    return _result(
        rendered.summary,
        _task_payload(tasks, page.next_cursor, params, window={"since": window.since_utc, "until": window.until_utc}),
    )


async def handle_find_projects(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """List projects, or search every project by name.

    A search walks all pages and ignores ``cursor``.
    """
    search = params.get("search")
    limit = ctx.limits.projects.check(params.get("limit"))
    page = await paginate(
        lambda req: ctx.client.get_projects(cursor=req.cursor, limit=req.limit),
        limit=limit,
        cursor=params.get("cursor"),
        exhaustive=bool(search),
        exhaustive_limit=ctx.limits.projects.max,
    )
    projects = [Project.from_api(record) for record in page.items]
    if search:
        needle = search.lower()
        projects = [p for p in projects if needle in p.name.lower()]

    if search:
        zero_hints = ["Try broader search terms", "Check spelling", "Remove search to see all projects"]
    else:
        zero_hints = ["No projects created yet", "Use add-projects to create a project"]
    rendered = render_summary(
        f'All projects matching "{search}"' if search else "Projects",
        projects,
        limit=None if search else limit,
        next_cursor=page.next_cursor,
        filter_hints=[f'search: "{search}"'] if search else [],
        zero_reason_hints=zero_hints,
        preview_limit=ctx.limits.preview_limit,
        format_item=format_project,
    )
    return _result(
        rendered.summary,
        {
            "projects": [p.to_output() for p in projects],
            "nextCursor": page.next_cursor,
            "totalCount": len(projects),
            "hasMore": page.next_cursor is not None,
            "appliedFilters": params,
        },
    )


async def handle_find_sections(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """List or search the sections of a project."""
    project_arg = params.get("projectId")
    if not project_arg:
        raise ValidationError("projectId is required")
    search = params.get("search")
    limit = ctx.limits.sections.check(params.get("limit"))

    project_id = await resolve_project_id(project_arg, client=ctx.client)
    page = await paginate(
        lambda req: ctx.client.get_sections(project_id=project_id, cursor=req.cursor, limit=req.limit),
        limit=limit,
        cursor=params.get("cursor"),
        exhaustive=bool(search),
        exhaustive_limit=ctx.limits.sections.max,
    )
    sections = [Section.from_api(record) for record in page.items]
    if search:
        needle = search.lower()
        sections = [s for s in sections if needle in s.name.lower()]

    if search:
        subject = f'Sections in project {project_arg} matching "{search}"'
        zero_hints = ["Try broader search terms", "Check spelling", "Remove search to see all sections"]
    else:
        subject = f"Sections in project {project_arg}"
        zero_hints = ["Project has no sections yet", "Use add-sections to create sections"]
    rendered = render_summary(
        subject,
        sections,
        limit=None if search else limit,
        next_cursor=page.next_cursor,
        zero_reason_hints=zero_hints,
        preview_limit=ctx.limits.preview_limit,
        format_item=format_section,
    )
    return _result(
        rendered.summary,
        {
            "sections": [s.to_output() for s in sections],
            "nextCursor": page.next_cursor,
            "totalCount": len(sections),
            "hasMore": page.next_cursor is not None,
            "appliedFilters": params,
        },
    )


async def handle_find_comments(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """Find comments of a task or project, or fetch one comment by id.

    Raises:
        ValidationError: Unless exactly one of taskId, projectId and
            commentId is given.
    """
    task_id = params.get("taskId")
    project_arg = params.get("projectId")
    comment_id = params.get("commentId")
    given = [key for key, value in (("taskId", task_id), ("projectId", project_arg), ("commentId", comment_id)) if value]
    if not given:
        raise ValidationError("Must provide exactly one of: taskId, projectId, or commentId.")
    if len(given) > 1:
        raise ValidationError(
            "Cannot provide multiple search parameters. Choose one of: taskId, projectId, or commentId."
        )
    limit = ctx.limits.comments.check(params.get("limit"))

    next_cursor = None
    if comment_id:
        comments = [Comment.from_api(await ctx.client.get_comment(comment_id))]
        search_type, search_id = "single", comment_id
        subject = f"Comment {comment_id}"
    else:
        project_id = await resolve_project_id(project_arg, client=ctx.client)
        page = await paginate(
            lambda req: ctx.client.get_comments(task_id=task_id, project_id=project_id, cursor=req.cursor, limit=req.limit),
            limit=limit,
            cursor=params.get("cursor"),
        )
        comments = [Comment.from_api(record) for record in page.items]
        next_cursor = page.next_cursor
        search_type = "task" if task_id else "project"
        search_id = task_id or project_arg
        subject = f"Comments on {search_type} {search_id}"

    with_files = sum(1 for c in comments if c.attachment is not None)
    rendered = render_summary(
        subject,
        comments,
        limit=None if comment_id else limit,
        next_cursor=next_cursor,
        filter_hints=[f"{with_files} with attachments"] if with_files else [],
        zero_reason_hints=[f"No comments on this {search_type} yet"],
        preview_limit=ctx.limits.preview_limit,
        format_item=format_comment,
    )
    return _result(
        rendered.summary,
        {
            "comments": [c.to_output() for c in comments],
            "searchType": search_type,
            "searchId": search_id,
            "nextCursor": next_cursor,
            "hasMore": next_cursor is not None,
            "totalCount": len(comments),
        },
    )


async def handle_find_project_collaborators(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """List the collaborators of a shared project, optionally filtered."""
    project_arg = params.get("projectId")
    if not project_arg:
        raise ValidationError("projectId is required")
    search = params.get("searchTerm")

    project_id = await resolve_project_id(project_arg, client=ctx.client)
    collaborators = await fetch_collaborators(
        ctx.client, project_id=project_id, page_size=ctx.limits.collaborators_page_size
    )
    if search:
        needle = search.lower()
        collaborators = [
            c for c in collaborators if needle in c.name.lower() or (c.email and needle in c.email.lower())
        ]

    zero_hints = ["Project may not be shared", "Share the project to add collaborators"]
    if search:
        zero_hints = ["Try broader search terms", "Remove searchTerm to list everyone"]
    rendered = render_summary(
        f"Collaborators in project {project_arg}",
        collaborators,
        filter_hints=[f'search: "{search}"'] if search else [],
        zero_reason_hints=zero_hints,
        preview_limit=ctx.limits.preview_limit,
        format_item=format_collaborator,
    )
    return _result(
        rendered.summary,
        {
            "collaborators": [c.to_output() for c in collaborators],
            "projectId": project_id,
            "totalCount": len(collaborators),
        },
    )


async def handle_add_sections(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """Create sections in one or more projects.

    Every inbox reference in the batch is resolved from a single shared
    profile fetch.
    """
    requested = params.get("sections") or []
    if not requested:
        raise ValidationError("sections must contain at least one section")
    for item in requested:
        if not item.get("name") or not item.get("projectId"):
            raise ValidationError("Each section needs a name and a projectId")

    project_ids = await resolve_project_ids([item["projectId"] for item in requested], client=ctx.client)
    created = await asyncio.gather(
        *(
            ctx.client.add_section(name=item["name"], project_id=project_id)
            for item, project_id in zip(requested, project_ids)
        )
    )
    sections = [Section.from_api(record) for record in created]

    count = len(sections)
    lines = [f"Added {count} section{'' if count == 1 else 's'}:"]
    lines.extend(f"• {s.name} (id={s.id}, projectId={s.project_id})" for s in sections)
    return _result(
        "\n".join(lines),
        {"sections": [s.to_output() for s in sections], "totalCount": count},
    )


async def handle_search(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """Search tasks and projects at once, returning ids, titles and URLs."""
    query = params.get("query")
    if not query or not query.strip():
        raise ValidationError("query is required")

    task_query = compose_filter(text_fragment(query))
    task_page, projects_page = await asyncio.gather(
        ctx.client.get_tasks_by_filter(query=task_query, limit=ctx.limits.tasks.max),
        paginate(
            lambda req: ctx.client.get_projects(cursor=req.cursor, limit=req.limit),
            limit=ctx.limits.projects.max,
            exhaustive=True,
        ),
    )

    needle = query.lower()
    results = [
        {"id": f"task:{record['id']}", "title": record.get("content", ""), "url": TASK_URL.format(id=record["id"])}
        for record in task_page.items
    ]
    results.extend(
        {"id": f"project:{record['id']}", "title": record.get("name", ""), "url": PROJECT_URL.format(id=record["id"])}
        for record in projects_page.items
        if needle in record.get("name", "").lower()
    )
    return _result(json.dumps({"results": results}), {"results": results, "totalCount": len(results)})


def _parse_document_id(document_id: str | None) -> tuple[str, str]:
    kind, _, object_id = (document_id or "").partition(":")
    if not object_id or kind not in ("task", "project"):
        raise ValidationError(
            'Invalid ID format. Expected "task:{id}" or "project:{id}", e.g. "task:8485093748"'
        )
    return kind, object_id


async def handle_fetch(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """Fetch one task or project by an id returned from search.

    Args:
        ctx: Handler context.
        params: Tool arguments with 'id' as "task:{id}" or "project:{id}".

    Returns:
        The document as ``{id, title, text, url, metadata}``, also serialized
        as the text channel.

    Raises:
        ValidationError: If the id is not in one of the two formats.
    """
    kind, object_id = _parse_document_id(params.get("id"))

    if kind == "task":
        task = Task.from_api(await ctx.client.get_task(object_id))
        text = task.content
        if task.description:
            text += f"\n\nDescription: {task.description}"
        if task.due_date:
            text += f"\nDue: {task.due_date}"
        if task.labels:
            text += f"\nLabels: {', '.join(task.labels)}"
        document = {
            "id": f"task:{task.id}",
            "title": task.content,
            "text": text,
            "url": TASK_URL.format(id=task.id),
            "metadata": {
                "priority": task.priority,
                "projectId": task.project_id,
                "sectionId": task.section_id,
                "parentId": task.parent_id,
                "recurring": task.recurring,
                "duration": task.duration,
                "responsibleUid": task.responsible_uid,
                "assignedByUid": task.assigned_by_uid,
                "checked": task.checked,
                "completedAt": task.completed_at,
            },
        }
    else:
        project = Project.from_api(await ctx.client.get_project(object_id))
        text = project.name
        if project.is_shared:
            text += "\n\nShared project"
        if project.is_favorite:
            text += "\nFavorite: Yes"
        document = {
            "id": f"project:{project.id}",
            "title": project.name,
            "text": text,
            "url": PROJECT_URL.format(id=project.id),
            "metadata": {
                "color": project.color,
                "isFavorite": project.is_favorite,
                "isShared": project.is_shared,
                "parentId": project.parent_id,
                "inboxProject": project.inbox_project,
                "viewStyle": project.view_style,
            },
        }
    return _result(json.dumps(document), document)


async def _all_sections(ctx: HandlerContext, project_id: str) -> list[Section]:
    page = await paginate(
        lambda req: ctx.client.get_sections(project_id=project_id, cursor=req.cursor, limit=req.limit),
        limit=ctx.limits.sections.max,
        exhaustive=True,
    )
    return [Section.from_api(record) for record in page.items]


def _project_tree_lines(
    project: Project,
    children: dict[str, list[Project]],
    sections: dict[str, list[Section]],
    depth: int = 0,
) -> list[str]:
    indent = "  " * depth
    lines = [f"{indent}- {format_project(project)}"]
    lines.extend(f"{indent}  - Section: {format_section(s)}" for s in sections[project.id])
    for child in children.get(project.id, []):
        lines.extend(_project_tree_lines(child, children, sections, depth + 1))
    return lines


async def _account_overview(ctx: HandlerContext) -> dict[str, Any]:
    page = await paginate(
        lambda req: ctx.client.get_projects(cursor=req.cursor, limit=req.limit),
        limit=ctx.limits.projects.max,
        exhaustive=True,
    )
    projects = [Project.from_api(record) for record in page.items]
    section_lists = await asyncio.gather(*(_all_sections(ctx, p.id) for p in projects))
    sections = {p.id: s for p, s in zip(projects, section_lists)}

    inbox = next((p for p in projects if p.inbox_project), None)
    others = [p for p in projects if not p.inbox_project]
    known = {p.id for p in others}
    children: dict[str, list[Project]] = {}
    roots: list[Project] = []
    for project in others:
        if project.parent_id and project.parent_id in known:
            children.setdefault(project.parent_id, []).append(project)
        else:
            roots.append(project)

    total_sections = sum(len(s) for s in section_lists)
    lines = [f"Account overview: {len(projects)} projects, {total_sections} sections."]
    if inbox is not None:
        lines.append("")
        lines.extend(_project_tree_lines(inbox, {}, sections))
    if roots:
        lines.extend(["", "Projects:"])
        for project in roots:
            lines.extend(_project_tree_lines(project, children, sections))
    if not projects:
        lines.append("No projects found.")

    def _entry(project: Project) -> dict[str, Any]:
        return {**project.to_output(), "sections": [s.to_output() for s in sections[project.id]]}

    return _result(
        "\n".join(lines),
        {
            "type": "account_overview",
            "inbox": _entry(inbox) if inbox is not None else None,
            "projects": [_entry(p) for p in others],
            "totalProjects": len(projects),
            "totalSections": total_sections,
            "hasNestedProjects": bool(children),
        },
    )


def _task_tree_lines(tasks: list[Task], subtasks: dict[str, list[Task]], depth: int = 0) -> list[str]:
    lines: list[str] = []
    for task in tasks:
        lines.append(f"{'  ' * depth}- {format_task(task)}")
        lines.extend(_task_tree_lines(subtasks.get(task.id, []), subtasks, depth + 1))
    return lines


async def _project_overview(ctx: HandlerContext, project_arg: str) -> dict[str, Any]:
    project_id = await resolve_project_id(project_arg, client=ctx.client)
    project_record, sections, task_page = await asyncio.gather(
        ctx.client.get_project(project_id),
        _all_sections(ctx, project_id),
        paginate(
            lambda req: ctx.client.get_tasks(project_id=project_id, cursor=req.cursor, limit=req.limit),
            limit=ctx.limits.tasks.max,
            exhaustive=True,
        ),
    )
    project = Project.from_api(project_record)
    tasks = sorted((Task.from_api(record) for record in task_page.items), key=lambda t: t.order)

    ids = {t.id for t in tasks}
    subtasks: dict[str, list[Task]] = {}
    top_level: list[Task] = []
    for task in tasks:
        if task.parent_id and task.parent_id in ids:
            subtasks.setdefault(task.parent_id, []).append(task)
        else:
            top_level.append(task)

    unsectioned = [t for t in top_level if not t.section_id]
    lines = [
        f"Project overview: {project.name} (id={project.id})",
        f"{len(tasks)} tasks in {len(sections)} sections.",
    ]
    if unsectioned:
        lines.append("")
        lines.extend(_task_tree_lines(unsectioned, subtasks))
    for section in sections:
        in_section = [t for t in top_level if t.section_id == section.id]
        lines.extend(["", f"Section: {format_section(section)}"])
        lines.extend(_task_tree_lines(in_section, subtasks) or ["  (no tasks)"])

    return _result(
        "\n".join(lines),
        {
            "type": "project_overview",
            "project": project.to_output(),
            "sections": [s.to_output() for s in sections],
            "tasks": [t.to_output() for t in tasks],
            "stats": {
                "totalTasks": len(tasks),
                "totalSections": len(sections),
                "tasksWithoutSection": sum(1 for t in tasks if not t.section_id),
            },
        },
    )


async def handle_get_overview(ctx: HandlerContext, params: dict[str, Any]) -> dict[str, Any]:
    """Outline the whole account, or one project with its tasks.

    Without ``projectId`` every project is listed with its sections, nested
    under its parent. With ``projectId`` (the inbox sentinel included) the
    project's sections and tasks are listed, subtasks under their parents.
    """
    project_arg = params.get("projectId")
    if project_arg:
        return await _project_overview(ctx, project_arg)
    return await _account_overview(ctx)


HANDLERS: dict[str, Handler] = {
    "find-tasks": handle_find_tasks,
    "find-tasks-by-filter": handle_find_tasks_by_filter,
    "find-tasks-by-date": handle_find_tasks_by_date,
    "find-completed-tasks": handle_find_completed_tasks,
    "find-projects": handle_find_projects,
    "find-sections": handle_find_sections,
    "find-comments": handle_find_comments,
    "find-project-collaborators": handle_find_project_collaborators,
    "add-sections": handle_add_sections,
    "search": handle_search,
    "fetch": handle_fetch,
    "get-overview": handle_get_overview,
}


async def dispatch(ctx: HandlerContext, name: str, params: dict[str, Any] | None) -> dict[str, Any]:
    """Run the handler registered under ``name``.

    Raises:
        ValidationError: If no handler has that name.
    """
    handler = HANDLERS.get(name)
    if handler is None:
        raise ValidationError(f"Unknown tool: {name}")
    logger.debug("Dispatching %s", name)
    return await handler(ctx, params or {})
