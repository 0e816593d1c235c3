"""MCP tool definitions for taskq.

Input schemas only; the handlers live in ``taskq.handlers``.
"""

from typing import Any


class ToolNames:
    """Published tool names."""

    FIND_TASKS = "find-tasks"
    FIND_TASKS_BY_FILTER = "find-tasks-by-filter"
    FIND_TASKS_BY_DATE = "find-tasks-by-date"
    FIND_COMPLETED_TASKS = "find-completed-tasks"
    FIND_PROJECTS = "find-projects"
    FIND_SECTIONS = "find-sections"
    FIND_COMMENTS = "find-comments"
    FIND_PROJECT_COLLABORATORS = "find-project-collaborators"
    ADD_SECTIONS = "add-sections"
    SEARCH = "search"
    FETCH = "fetch"
    GET_OVERVIEW = "get-overview"


_PROJECT_ID = {
    "type": "string",
    "description": 'Project ID, or the text "inbox" for the inbox project.',
}
_CURSOR = {
    "type": "string",
    "description": "Cursor from a previous call with the same parameters, to get the next page.",
}


def _limit(default: int, maximum: int = 200) -> dict[str, Any]:
    return {
        "type": "integer",
        "minimum": 1,
        "maximum": maximum,
        "default": default,
        "description": "The maximum number of results to return.",
    }


_LABELS = {
    "labels": {
        "type": "array",
        "items": {"type": "string"},
        "description": 'Labels to filter by. Do not include the "@" prefix.',
    },
    "labelsOperator": {
        "type": "string",
        "enum": ["and", "or"],
        "default": "or",
        "description": "Whether a task must have all of the labels, or any of them.",
    },
}

_RESPONSIBLE = {
    "responsibleUser": {
        "type": "string",
        "description": "Find tasks assigned to this user. Can be a user ID, name, or email address.",
    },
    "responsibleUserFiltering": {
        "type": "string",
        "enum": ["assigned", "unassignedOrMe", "all"],
        "description": (
            'How to filter by assignment when responsibleUser is not given. "assigned" = only tasks '
            'assigned to others; "unassignedOrMe" = unassigned tasks or tasks assigned to me; '
            '"all" = every task.'
        ),
    },
}

_READ_ONLY = {"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True}

TOOL_SCHEMAS: dict[str, dict[str, Any]] = {
    ToolNames.FIND_TASKS: {
        "description": (
            "Find tasks by text search, or by project/section/parent container/responsible user. "
            "At least one filter must be provided."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "searchText": {"type": "string", "description": "The text to search for in tasks."},
                "projectId": _PROJECT_ID,
                "sectionId": {"type": "string", "description": "Find tasks in this section."},
                "parentId": {"type": "string", "description": "Find subtasks of this parent task."},
                **_RESPONSIBLE,
                "limit": _limit(10),
                "cursor": _CURSOR,
                **_LABELS,
            },
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.FIND_TASKS_BY_FILTER: {
        "description": (
            'Find tasks using a raw filter query, e.g. "##Work" or "(today | overdue) & p1". '
            "Use this when you need full filter syntax."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "filter": {"type": "string", "minLength": 1, "description": "Raw filter query string."},
                "limit": _limit(10),
                "cursor": _CURSOR,
                "sortBy": {
                    "type": "string",
                    "enum": ["priority", "due_date", "project", "created", "order", "default"],
                    "description": "Sort results by field.",
                },
                "sortOrder": {
                    "type": "string",
                    "enum": ["asc", "desc"],
                    "description": "Default varies by sortBy: priority=desc, due_date=asc, project=asc, created=desc.",
                },
                **_RESPONSIBLE,
                **_LABELS,
            },
            "required": ["filter"],
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.FIND_TASKS_BY_DATE: {
        "description": (
            "Get tasks by date range or overdue tasks. Use startDate 'overdue' for overdue tasks, "
            "or provide a date and a number of days."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "startDate": {
                    "type": "string",
                    "description": "YYYY-MM-DD, 'today', 'overdue', or a date like 'next monday'.",
                },
                "daysCount": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 30,
                    "default": 1,
                    "description": "Number of days from startDate. Ignored for 'overdue'.",
                },
                "limit": _limit(10),
                "cursor": _CURSOR,
                **_RESPONSIBLE,
                **_LABELS,
            },
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.FIND_COMPLETED_TASKS: {
        "description": "Get completed tasks (includes all collaborators by default; use responsibleUser to narrow).",
        "inputSchema": {
            "type": "object",
            "properties": {
                "getBy": {
                    "type": "string",
                    "enum": ["completion", "due"],
                    "default": "completion",
                    "description": "Select tasks by completion date or by due date.",
                },
                "since": {"type": "string", "description": "First local day, YYYY-MM-DD."},
                "until": {"type": "string", "description": "Last local day, YYYY-MM-DD."},
                "workspaceId": {"type": "string"},
                "projectId": _PROJECT_ID,
                "sectionId": {"type": "string"},
                "parentId": {"type": "string"},
                "responsibleUser": _RESPONSIBLE["responsibleUser"],
                "limit": _limit(50),
                "cursor": _CURSOR,
                **_LABELS,
            },
            "required": ["since", "until"],
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.FIND_PROJECTS: {
        "description": (
            "List all projects or search projects by name. Searching returns every match and ignores "
            "pagination."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "search": {"type": "string", "description": "Partial, case-insensitive project name."},
                "limit": _limit(50),
                "cursor": _CURSOR,
            },
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.FIND_SECTIONS: {
        "description": "Search for sections by name in a project.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "projectId": _PROJECT_ID,
                "search": {"type": "string", "description": "Partial, case-insensitive section name."},
                "limit": _limit(50),
                "cursor": _CURSOR,
            },
            "required": ["projectId"],
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.FIND_COMMENTS: {
        "description": (
            "Find comments by task or project, or get a comment by ID. Exactly one of taskId, "
            "projectId, or commentId must be provided."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "taskId": {"type": "string"},
                "projectId": _PROJECT_ID,
                "commentId": {"type": "string"},
                "limit": _limit(10),
                "cursor": _CURSOR,
            },
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.FIND_PROJECT_COLLABORATORS: {
        "description": "List the collaborators of a shared project.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "projectId": _PROJECT_ID,
                "searchTerm": {"type": "string", "description": "Filter by name or email."},
            },
            "required": ["projectId"],
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.ADD_SECTIONS: {
        "description": "Add one or more new sections to projects.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "sections": {
                    "type": "array",
                    "minItems": 1,
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string", "minLength": 1},
                            "projectId": _PROJECT_ID,
                        },
                        "required": ["name", "projectId"],
                    },
                },
            },
            "required": ["sections"],
        },
        "annotations": {"readOnlyHint": False, "destructiveHint": False, "idempotentHint": False},
    },
    ToolNames.SEARCH: {
        "description": "Search across tasks and projects. Returns IDs, titles, and URLs.",
        "inputSchema": {
            "type": "object",
            "properties": {"query": {"type": "string", "minLength": 1, "description": "Text to search for."}},
            "required": ["query"],
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.FETCH: {
        "description": (
            'Fetch the full contents of a task or project by its ID. The ID should be in the format '
            '"task:{id}" or "project:{id}", as returned by search.'
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "id": {
                    "type": "string",
                    "minLength": 1,
                    "description": 'Document id in the format "task:{id}" or "project:{id}".',
                },
            },
            "required": ["id"],
        },
        "annotations": _READ_ONLY,
    },
    ToolNames.GET_OVERVIEW: {
        "description": (
            "Get an overview of the account (every project with its sections) or, given a projectId, "
            "of one project with its sections and tasks."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {"projectId": _PROJECT_ID},
        },
        "annotations": _READ_ONLY,
    },
}
