"""Pydantic data models."""

from taskq.models.paging import DateWindow, ExhaustiveResult, PageRequest, PageResult
from taskq.models.project import Comment, Project, Section
from taskq.models.task import Task
from taskq.models.user import Collaborator, ResolvedIdentity, User

__all__ = [
    "Task",
    "Project",
    "Section",
    "Comment",
    "User",
    "Collaborator",
    "ResolvedIdentity",
    "PageRequest",
    "PageResult",
    "ExhaustiveResult",
    "DateWindow",
]
