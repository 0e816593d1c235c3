"""Filter fragments and the composer that joins them into one query.

Every facet of a find operation (labels, assignee, free text, a raw user
filter) is turned into a ``FilterFragment`` by one of the builders here and
combined with ``compose``. Fragments are never parsed back apart.
"""

from collections.abc import Iterable

AND_JOINER = " & "

# Characters with meaning in the filter language; escaped inside search text.
_SEARCH_SPECIAL_CHARS = "&|!(),"

# Both bind looser than "&", so a raw query using them must be grouped.
_OR_OPERATORS = ("|", ",")


class FilterFragment(str):
    """A composable sub-expression of a filter query.

    Either empty (contributes nothing) or a syntactically complete boolean
    sub-expression.
    """

    __slots__ = ()

    @property
    def is_empty(self) -> bool:
        return not self


EMPTY = FilterFragment("")


def compose(base: str, addition: str) -> FilterFragment:
    """Join two fragments with an explicit logical AND.

    Args:
        base: The fragment built so far.
        addition: The fragment to append.

    Returns:
        ``addition`` if ``base`` is empty, ``base`` if ``addition`` is empty,
        otherwise ``"<base> & <addition>"``.
    """
    if not base:
        return FilterFragment(addition)
    if not addition:
        return FilterFragment(base)
    return FilterFragment(f"{base}{AND_JOINER}{addition}")


def compose_filter(*fragments: str | Iterable[str]) -> str | None:
    """Compose any number of fragments, in order, into a full query.

    Accepts fragments directly or iterables of fragments.

    Returns:
        The composed query, or None when every fragment is empty so the
        endpoint receives no filter at all.
    """
    query: FilterFragment = EMPTY
    for fragment in _flatten(fragments):
        query = compose(query, fragment)
    return str(query) if query else None


def _flatten(fragments: tuple[str | Iterable[str], ...]) -> Iterable[str]:
    for fragment in fragments:
        if fragment is None:
            continue
        if isinstance(fragment, str):
            yield fragment
        else:
            yield from fragment


def escape_search_text(text: str) -> str:
    """Backslash-escape filter operators inside free text."""
    return "".join(f"\\{c}" if c in _SEARCH_SPECIAL_CHARS else c for c in text)


def text_fragment(text: str | None) -> FilterFragment:
    """Build a free-text ``search:`` fragment.

    Args:
        text: Text to search for; None or blank yields an empty fragment.
    """
    if not text or not text.strip():
        return EMPTY
    return FilterFragment(f"search: {escape_search_text(text.strip())}")


def raw_fragment(query: str | None) -> FilterFragment:
    """Wrap a caller-supplied filter so it keeps its precedence under AND.

    Queries using either OR operator (``|`` or ``,``) are parenthesised
    unless already enclosed in one group.
    """
    if not query or not query.strip():
        return EMPTY
    query = query.strip()
    if any(op in query for op in _OR_OPERATORS) and not _is_single_group(query):
        return FilterFragment(f"({query})")
    return FilterFragment(query)


def _is_single_group(query: str) -> bool:
    if not (query.startswith("(") and query.endswith(")")):
        return False
    depth = 0
    for i, c in enumerate(query):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0 and i != len(query) - 1:
                return False
    return depth == 0
