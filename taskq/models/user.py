"""User and collaborator models for taskq."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TzInfo(BaseModel):
    """Timezone information attached to a user profile."""

    timezone: str | None = None
    gmt_string: str = Field(default="+00:00", alias="gmtString")

    model_config = ConfigDict(populate_by_name=True)


class User(BaseModel):
    """The authenticated user's profile."""

    id: str
    email: str | None = None
    full_name: str | None = Field(default=None, alias="fullName")
    inbox_project_id: str = Field(alias="inboxProjectId")
    tz_info: TzInfo = Field(default_factory=TzInfo, alias="tzInfo")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> "User":
        """Create a User from a raw API profile record."""
        tz = record.get("tz_info") or {}
        return cls(
            id=str(record["id"]),
            email=record.get("email"),
            full_name=record.get("full_name"),
            inbox_project_id=str(record["inbox_project_id"]),
            tz_info=TzInfo(
                timezone=tz.get("timezone"),
                gmt_string=tz.get("gmt_string") or "+00:00",
            ),
        )

    @property
    def gmt_offset(self) -> str:
        """The user's GMT offset string, e.g. "+02:00"."""
        return self.tz_info.gmt_string or "+00:00"


class Collaborator(BaseModel):
    """A person sharing a project or workspace with the user."""

    id: str
    name: str = ""
    email: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> "Collaborator":
        """Create a Collaborator from a raw API record."""
        return cls(
            id=str(record["id"]),
            name=record.get("name") or record.get("full_name") or "",
            email=record.get("email"),
        )

    def to_output(self) -> dict[str, Any]:
        """Dump as a dictionary for structured tool output."""
        return self.model_dump(exclude_none=True)


class ResolvedIdentity(BaseModel):
    """A collaborator matched from a name, email or id.

    Only lives for the duration of one operation.
    """

    id: str
    email: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def label(self) -> str:
        """Best human-readable handle for hints: email, then name, then id."""
        return self.email or self.display_name or self.id
