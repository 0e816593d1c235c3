"""Text summaries shared by every find operation.

Every tool answers with a one-line header, one line per applied filter,
then either zero-result hints or a bounded preview of the matches, and
finally a pagination hint when the remote reported more data.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from taskq.models.project import Comment, Project, Section
from taskq.models.task import Task
from taskq.models.user import Collaborator

DEFAULT_PREVIEW_LIMIT = 10
INDENT = "    "
SEPARATOR = " • "


@dataclass(frozen=True)
class RenderedSummary:
    """The rendered text channel of a tool response."""

    summary: str
    preview: str

    def __str__(self) -> str:
        return self.summary


def _header(subject: str, count: int, limit: int | None, next_cursor: str | None) -> str:
    header = f"{subject}: {count}"
    if limit is not None:
        header += f" (limit {limit})"
    if next_cursor:
        header += ", more available"
    return header + "."


def render_preview(
    items: Sequence[Any],
    preview_limit: int = DEFAULT_PREVIEW_LIMIT,
    format_item: Callable[[Any], str] = str,
) -> list[str]:
    """Render up to ``preview_limit`` indented item lines plus a trailer."""
    lines = [f"{INDENT}{format_item(item)}" for item in items[:preview_limit]]
    remaining = len(items) - preview_limit
    if remaining > 0:
        lines.append(f"{INDENT}…and {remaining} more")
    return lines


def render_summary(
    subject: str,
    items: Sequence[Any],
    *,
    limit: int | None = None,
    next_cursor: str | None = None,
    filter_hints: Iterable[str] = (),
    zero_reason_hints: Iterable[str] = (),
    preview_limit: int = DEFAULT_PREVIEW_LIMIT,
    format_item: Callable[[Any], str] = str,
) -> RenderedSummary:
    """Build the summary text for a list of results.

    Args:
        subject: What was searched for, e.g. "Tasks in project".
        items: The matched items, in result order.
        limit: Page size that was requested, shown in the header.
        next_cursor: Cursor for the next page; repeated verbatim in the
            pagination hint.
        filter_hints: One line per applied facet.
        zero_reason_hints: Suggestions shown only when nothing matched.
        preview_limit: Maximum number of item lines.
        format_item: Renders one item as a single line.

    Returns:
        RenderedSummary. ``preview`` holds just the item lines and is empty
        when there are no items.
    """
    lines = [_header(subject, len(items), limit, next_cursor)]
    lines.extend(f"Filter: {hint}" for hint in filter_hints)

    preview_lines: list[str] = []
    if not items:
        hints = list(zero_reason_hints)
        if hints:
            lines.append("No results. Possible causes:")
            lines.extend(f"{INDENT}- {hint}" for hint in hints)
        else:
            lines.append("No results.")
    else:
        preview_lines = render_preview(items, preview_limit, format_item)
        lines.append("Preview:")
        lines.extend(preview_lines)

    if next_cursor:
        lines.append(f'Next: pass cursor="{next_cursor}" to fetch more results.')

    return RenderedSummary(summary="\n".join(lines), preview="\n".join(preview_lines))


def format_task(task: Task) -> str:
    """One preview line for a task."""
    parts = [task.content]
    if task.due_date:
        parts.append(f"due {task.due_date}")
    if task.recurring:
        parts.append(f"every {task.recurring}" if isinstance(task.recurring, str) else "recurring")
    if task.deadline_date:
        parts.append(f"deadline {task.deadline_date}")
    if task.priority != "p4":
        parts.append(task.priority)
    if task.duration:
        parts.append(task.duration)
    if task.labels:
        parts.append(" ".join(f"@{label}" for label in task.labels))
    if task.checked:
        parts.append("done")
    parts.append(f"id={task.id}")
    return SEPARATOR.join(parts)


def format_project(project: Project) -> str:
    """One preview line for a project."""
    parts = [project.name]
    if project.inbox_project:
        parts.append("Inbox")
    if project.is_favorite:
        parts.append("★")
    if project.is_shared:
        parts.append("shared")
    parts.append(f"id={project.id}")
    return SEPARATOR.join(parts)


def format_section(section: Section) -> str:
    """One preview line for a section."""
    return SEPARATOR.join([section.name, f"id={section.id}"])


def format_comment(comment: Comment, max_length: int = 60) -> str:
    """One preview line for a comment, truncating long content."""
    content = " ".join(comment.content.split())
    if len(content) > max_length:
        content = content[: max_length - 1] + "…"
    parts = [content or "(no text)"]
    if comment.attachment and comment.attachment.file_name:
        parts.append(f"file {comment.attachment.file_name}")
    if comment.posted_at:
        parts.append(comment.posted_at)
    parts.append(f"id={comment.id}")
    return SEPARATOR.join(parts)


def format_collaborator(collaborator: Collaborator) -> str:
    """One preview line for a collaborator."""
    parts = [collaborator.name or "(unnamed)"]
    if collaborator.email:
        parts.append(collaborator.email)
    parts.append(f"id={collaborator.id}")
    return SEPARATOR.join(parts)
