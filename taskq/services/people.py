"""Responsible-party resolution and assignment filtering."""

import logging
from collections.abc import Iterable
from difflib import SequenceMatcher
from enum import Enum
from typing import TYPE_CHECKING

from taskq.exceptions import NotFoundError
from taskq.models.task import Task
from taskq.models.user import Collaborator, ResolvedIdentity
from taskq.services.pagination import paginate
from taskq.utils.filters import EMPTY, FilterFragment

if TYPE_CHECKING:
    from taskq.client import TodoistClient

logger = logging.getLogger(__name__)

DEFAULT_COLLABORATOR_PAGE_SIZE = 200


class ResponsibleUserFiltering(str, Enum):
    """Assignment filter applied when no specific person is requested."""

    ASSIGNED = "assigned"  # only tasks assigned to others
    UNASSIGNED_OR_ME = "unassignedOrMe"
    ALL = "all"


async def fetch_collaborators(
    client: "TodoistClient",
    *,
    project_id: str | None = None,
    page_size: int = DEFAULT_COLLABORATOR_PAGE_SIZE,
) -> list[Collaborator]:
    """Fetch every collaborator in scope, walking all pages.

    Args:
        client: Remote API client.
        project_id: Restrict to one project; None means every shared project.
        page_size: Page size for each request.
    """
    result = await paginate(
        lambda req: client.get_collaborators(project_id=project_id, cursor=req.cursor, limit=req.limit),
        limit=page_size,
        exhaustive=True,
    )
    return [Collaborator.from_api(record) for record in result.items]


def match_collaborator(collaborators: list[Collaborator], identifier: str) -> Collaborator | None:
    """Find a collaborator by exact id, then email, then display name.

    Email and name comparisons ignore case. The first match wins.
    """
    for collaborator in collaborators:
        if collaborator.id == identifier:
            return collaborator

    needle = identifier.strip().lower()
    for collaborator in collaborators:
        if collaborator.email and collaborator.email.lower() == needle:
            return collaborator
    for collaborator in collaborators:
        if collaborator.name and collaborator.name.lower() == needle:
            return collaborator
    return None


def find_similar(identifier: str, collaborators: list[Collaborator], max_suggestions: int = 3) -> list[str]:
    """Suggest collaborator names close to an unmatched identifier.

    Args:
        identifier: The identifier that failed to match.
        collaborators: Candidates to compare against.
        max_suggestions: Maximum number of suggestions to return.

    Returns:
        Names sorted by similarity, best first.
    """
    needle = identifier.lower()
    scored: list[tuple[float, str]] = []
    for collaborator in collaborators:
        for candidate in filter(None, (collaborator.name, collaborator.email)):
            ratio = SequenceMatcher(None, needle, candidate.lower()).ratio()
            if needle in candidate.lower():
                ratio = max(ratio, 0.7)
            if ratio > 0.4:
                scored.append((ratio, collaborator.name or candidate))
                break

    scored.sort(key=lambda x: x[0], reverse=True)
    return [name for _, name in scored[:max_suggestions]]


async def resolve_responsible_user(
    client: "TodoistClient",
    identifier: str | None = None,
    *,
    project_id: str | None = None,
    page_size: int = DEFAULT_COLLABORATOR_PAGE_SIZE,
) -> ResolvedIdentity | None:
    """Map a name, email or id to a collaborator.

    Args:
        client: Remote API client.
        identifier: What the caller typed; None means no assignee filter.
        project_id: Scope the collaborator lookup to one project.
        page_size: Collaborator page size.

    Returns:
        The resolved identity, or None when no identifier was given.

    Raises:
        NotFoundError: If no collaborator matches the identifier.
    """
    if identifier is None or not identifier.strip():
        return None

    collaborators = await fetch_collaborators(client, project_id=project_id, page_size=page_size)
    match = match_collaborator(collaborators, identifier)
    if match is None:
        raise NotFoundError(identifier, kind="collaborator", suggestions=find_similar(identifier, collaborators))

    logger.debug("Resolved responsible user %r to %s", identifier, match.id)
    return ResolvedIdentity(id=match.id, email=match.email, display_name=match.name or None)


def assignee_fragment(
    resolved: ResolvedIdentity | None = None,
    filtering: ResponsibleUserFiltering | str | None = ResponsibleUserFiltering.UNASSIGNED_OR_ME,
) -> FilterFragment:
    """Build the server-side assignment fragment.

    A resolved person always wins over the general ``filtering`` mode.
    """
    if resolved is not None:
        return FilterFragment(f"assigned to: {resolved.label}")

    mode = ResponsibleUserFiltering(filtering or ResponsibleUserFiltering.UNASSIGNED_OR_ME)
    if mode is ResponsibleUserFiltering.UNASSIGNED_OR_ME:
        return FilterFragment("!assigned to: others")
    if mode is ResponsibleUserFiltering.ASSIGNED:
        return FilterFragment("assigned to: others")
    return EMPTY


def filter_tasks_by_responsible_user(
    tasks: Iterable[Task],
    *,
    current_user_id: str,
    resolved: ResolvedIdentity | None = None,
    filtering: ResponsibleUserFiltering | str | None = ResponsibleUserFiltering.UNASSIGNED_OR_ME,
) -> list[Task]:
    """Client-side equivalent of ``assignee_fragment`` for plain listings."""
    if resolved is not None:
        return [t for t in tasks if t.responsible_uid == resolved.id]

    mode = ResponsibleUserFiltering(filtering or ResponsibleUserFiltering.UNASSIGNED_OR_ME)
    if mode is ResponsibleUserFiltering.UNASSIGNED_OR_ME:
        return [t for t in tasks if not t.responsible_uid or t.responsible_uid == current_user_id]
    if mode is ResponsibleUserFiltering.ASSIGNED:
        return [t for t in tasks if t.responsible_uid and t.responsible_uid != current_user_id]
    return list(tasks)
