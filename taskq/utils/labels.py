"""Label filter compilation."""

from collections.abc import Iterable
from enum import Enum

from taskq.utils.filters import EMPTY, FilterFragment


class LabelsOperator(str, Enum):
    """How multiple labels combine: all of them, or any of them."""

    AND = "and"
    OR = "or"


_JOINERS = {LabelsOperator.AND: " & ", LabelsOperator.OR: ", "}


def _prefixed(label: str) -> str:
    return label if label.startswith("@") else f"@{label}"


def compile_label_filter(
    labels: Iterable[str] | None,
    operator: LabelsOperator | str = LabelsOperator.OR,
) -> FilterFragment:
    """Turn label names and a combinator into a filter fragment.

    Each label becomes ``@label``. Labels are joined with ``&`` for ``and``
    and ``,`` for ``or``; an ``or`` over more than one label is wrapped in
    parentheses so it keeps its precedence when ANDed with other fragments.

    Args:
        labels: Label names, with or without a leading "@".
        operator: "and" or "or".

    Returns:
        The fragment, empty when no labels are given.
    """
    names = [_prefixed(label) for label in labels or [] if label]
    if not names:
        return EMPTY

    operator = LabelsOperator(operator)
    joined = _JOINERS[operator].join(names)
    if operator is LabelsOperator.OR and len(names) > 1:
        return FilterFragment(f"({joined})")
    return FilterFragment(joined)


def describe_labels(labels: Iterable[str] | None, operator: LabelsOperator | str) -> str:
    """Human-readable label combination for summary hints, e.g. "@a | @b"."""
    joiner = " & " if LabelsOperator(operator) is LabelsOperator.AND else " | "
    return joiner.join(_prefixed(label) for label in labels or [])
