"""Core query, pagination and rendering services."""

from taskq.services.pagination import paginate
from taskq.services.people import ResponsibleUserFiltering, assignee_fragment, resolve_responsible_user
from taskq.services.projects import (
    ExplicitProject,
    InboxSentinel,
    ProjectRef,
    resolve_project_id,
    resolve_project_ids,
)
from taskq.services.rendering import RenderedSummary, render_summary

__all__ = [
    "paginate",
    "ResponsibleUserFiltering",
    "assignee_fragment",
    "resolve_responsible_user",
    "ExplicitProject",
    "InboxSentinel",
    "ProjectRef",
    "resolve_project_id",
    "resolve_project_ids",
    "RenderedSummary",
    "render_summary",
]
