"""Task model for taskq."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# The API stores priority inverted: 4 is the most urgent ("p1").
API_PRIORITY_TO_LABEL: dict[int, str] = {4: "p1", 3: "p2", 2: "p3", 1: "p4"}


def priority_label(api_priority: int | None) -> str:
    """Convert an API priority number into its display label.

    Args:
        api_priority: Priority as returned by the API (1 lowest, 4 highest).

    Returns:
        One of "p1".."p4"; unknown values fall back to "p4".
    """
    if api_priority is None:
        return "p4"
    return API_PRIORITY_TO_LABEL.get(api_priority, "p4")


def format_duration(minutes: int) -> str:
    """Format a duration in minutes as a compact string like "2h30m".

    Args:
        minutes: Duration in minutes.

    Returns:
        Compact duration string.
    """
    hours, mins = divmod(minutes, 60)
    if hours and mins:
        return f"{hours}h{mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins}m"


class Task(BaseModel):
    """An active or completed task returned by the remote service."""

    id: str
    content: str
    description: str = ""
    due_date: str | None = Field(default=None, alias="dueDate")
    recurring: bool | str = False
    deadline_date: str | None = Field(default=None, alias="deadlineDate")
    priority: str = "p4"
    project_id: str = Field(alias="projectId")
    section_id: str | None = Field(default=None, alias="sectionId")
    parent_id: str | None = Field(default=None, alias="parentId")
    labels: list[str] = Field(default_factory=list)
    duration: str | None = None
    responsible_uid: str | None = Field(default=None, alias="responsibleUid")
    assigned_by_uid: str | None = Field(default=None, alias="assignedByUid")
    checked: bool = False
    completed_at: str | None = Field(default=None, alias="completedAt")
    order: int = 0

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> "Task":
        """Create a Task from a raw API task record.

        Args:
            record: Task record as returned by the REST API.

        Returns:
            A Task instance.
        """
        due = record.get("due") or {}
        recurring: bool | str = False
        if due.get("is_recurring") and due.get("string"):
            recurring = due["string"]

        deadline = record.get("deadline") or {}

        duration = None
        raw_duration = record.get("duration")
        if raw_duration and raw_duration.get("amount"):
            amount = int(raw_duration["amount"])
            # Day-based durations are expressed in whole days by the API
            if raw_duration.get("unit") == "day":
                amount *= 24 * 60
            duration = format_duration(amount)

        return cls(
            id=str(record["id"]),
            content=record.get("content", ""),
            description=record.get("description") or "",
            due_date=due.get("date"),
            recurring=recurring,
            deadline_date=deadline.get("date"),
            priority=priority_label(record.get("priority")),
            project_id=str(record.get("project_id", "")),
            section_id=record.get("section_id"),
            parent_id=record.get("parent_id"),
            labels=list(record.get("labels") or []),
            duration=duration,
            responsible_uid=record.get("responsible_uid"),
            assigned_by_uid=record.get("assigned_by_uid"),
            checked=bool(record.get("checked", False)),
            completed_at=record.get("completed_at"),
            order=int(record.get("child_order") or 0),
        )

    def to_output(self) -> dict[str, Any]:
        """Dump as a camelCase dictionary for structured tool output."""
        return self.model_dump(by_alias=True, exclude_none=True)
