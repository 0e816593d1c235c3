"""Project references and inbox sentinel resolution.

Callers may pass the literal ``"inbox"`` wherever a project id is accepted.
It is parsed once into a ``ProjectRef`` and resolved against the user's
profile by ``resolve_project_id``; no other module compares against the
sentinel string.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from taskq.exceptions import ValidationError
from taskq.models.user import User

if TYPE_CHECKING:
    from taskq.client import TodoistClient

logger = logging.getLogger(__name__)

INBOX_SENTINEL = "inbox"


@dataclass(frozen=True)
class ExplicitProject:
    """A real project id, passed through unchanged."""

    id: str


@dataclass(frozen=True)
class InboxSentinel:
    """Stands for the caller's inbox project."""


ProjectRef = Union[ExplicitProject, InboxSentinel]


def parse_project_ref(project_id: str | ProjectRef | None) -> ProjectRef | None:
    """Turn a raw project argument into a ProjectRef.

    Args:
        project_id: A project id, the "inbox" sentinel, an existing
            ProjectRef, or None.

    Returns:
        The parsed reference, or None when no project was given.
    """
    if project_id is None or isinstance(project_id, (ExplicitProject, InboxSentinel)):
        return project_id
    if project_id == INBOX_SENTINEL:
        return InboxSentinel()
    return ExplicitProject(project_id)


def needs_profile(project_ids: Sequence[str | ProjectRef | None]) -> bool:
    """Whether resolving these references requires the user profile."""
    return any(isinstance(parse_project_ref(p), InboxSentinel) for p in project_ids)


async def resolve_project_id(
    project_id: str | ProjectRef | None,
    *,
    user: User | None = None,
    client: "TodoistClient | None" = None,
) -> str | None:
    """Resolve a project reference to a real project id.

    No existence check is made for explicit ids; an unknown id surfaces as
    a remote failure later.

    Args:
        project_id: Raw project argument or ProjectRef.
        user: Already-fetched profile. When given, no remote call is made.
        client: Used for a single profile fetch if the sentinel must be
            resolved and ``user`` is not given.

    Returns:
        The project id, or None when no project was given.

    Raises:
        ValidationError: If the sentinel must be resolved but neither a
            user nor a client was supplied.
    """
    ref = parse_project_ref(project_id)
    if ref is None:
        return None
    if isinstance(ref, ExplicitProject):
        return ref.id

    if user is None:
        if client is None:
            raise ValidationError("Cannot resolve the inbox project without a user profile")
        logger.debug("Fetching user profile to resolve inbox project")
        user = await client.get_user()
    return user.inbox_project_id


async def resolve_project_ids(
    project_ids: Sequence[str | ProjectRef | None],
    *,
    user: User | None = None,
    client: "TodoistClient | None" = None,
) -> list[str | None]:
    """Resolve many project references sharing at most one profile fetch.

    Args:
        project_ids: References in batch order.
        user: Already-fetched profile, if any.
        client: Used for the single profile fetch when needed.

    Returns:
        Resolved ids in the same order as the input.
    """
    if user is None and needs_profile(project_ids):
        if client is None:
            raise ValidationError("Cannot resolve the inbox project without a user profile")
        logger.debug("Fetching user profile once for %d references", len(project_ids))
        user = await client.get_user()
    return [await resolve_project_id(p, user=user) for p in project_ids]
