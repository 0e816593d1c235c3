"""Project, section and comment models for taskq."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Project(BaseModel):
    """A personal or workspace project."""

    id: str
    name: str
    color: str = "charcoal"
    is_favorite: bool = Field(default=False, alias="isFavorite")
    is_shared: bool = Field(default=False, alias="isShared")
    parent_id: str | None = Field(default=None, alias="parentId")
    inbox_project: bool = Field(default=False, alias="inboxProject")
    view_style: str = Field(default="list", alias="viewStyle")
    workspace_id: str | None = Field(default=None, alias="workspaceId")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> "Project":
        """Create a Project from a raw API record."""
        return cls(
            id=str(record["id"]),
            name=record.get("name", ""),
            color=record.get("color") or "charcoal",
            is_favorite=bool(record.get("is_favorite", False)),
            is_shared=bool(record.get("is_shared", False)),
            parent_id=record.get("parent_id"),
            inbox_project=bool(record.get("inbox_project", False)),
            view_style=record.get("view_style") or "list",
            workspace_id=record.get("workspace_id"),
        )

    def to_output(self) -> dict[str, Any]:
        """Dump as a camelCase dictionary for structured tool output."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Section(BaseModel):
    """A section inside a project."""

    id: str
    name: str
    project_id: str | None = Field(default=None, alias="projectId")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> "Section":
        """Create a Section from a raw API record."""
        return cls(
            id=str(record["id"]),
            name=record.get("name", ""),
            project_id=record.get("project_id"),
        )

    def to_output(self) -> dict[str, Any]:
        """Dump as a camelCase dictionary for structured tool output."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Attachment(BaseModel):
    """A file attached to a comment."""

    resource_type: str | None = Field(default=None, alias="resourceType")
    file_name: str | None = Field(default=None, alias="fileName")
    file_type: str | None = Field(default=None, alias="fileType")
    file_url: str | None = Field(default=None, alias="fileUrl")

    model_config = ConfigDict(populate_by_name=True)


class Comment(BaseModel):
    """A comment on a task or a project."""

    id: str
    task_id: str | None = Field(default=None, alias="taskId")
    project_id: str | None = Field(default=None, alias="projectId")
    content: str = ""
    posted_at: str | None = Field(default=None, alias="postedAt")
    posted_uid: str | None = Field(default=None, alias="postedUid")
    attachment: Attachment | None = Field(default=None, alias="fileAttachment")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> "Comment":
        """Create a Comment from a raw API record."""
        raw_attachment = record.get("file_attachment")
        attachment = None
        if raw_attachment:
            attachment = Attachment(
                resource_type=raw_attachment.get("resource_type"),
                file_name=raw_attachment.get("file_name"),
                file_type=raw_attachment.get("file_type"),
                file_url=raw_attachment.get("file_url"),
            )
        return cls(
            id=str(record["id"]),
            task_id=record.get("item_id") or record.get("task_id"),
            project_id=record.get("project_id"),
            content=record.get("content", ""),
            posted_at=record.get("posted_at"),
            posted_uid=record.get("posted_uid"),
            attachment=attachment,
        )

    def to_output(self) -> dict[str, Any]:
        """Dump as a camelCase dictionary for structured tool output."""
        return self.model_dump(by_alias=True, exclude_none=True)
