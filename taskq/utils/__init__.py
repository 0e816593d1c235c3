"""Query building and date helpers."""

from taskq.utils.dates import local_today, normalize_date_window, parse_local_date
from taskq.utils.filters import FilterFragment, compose, compose_filter, text_fragment
from taskq.utils.labels import LabelsOperator, compile_label_filter

__all__ = [
    "FilterFragment",
    "compose",
    "compose_filter",
    "text_fragment",
    "LabelsOperator",
    "compile_label_filter",
    "normalize_date_window",
    "local_today",
    "parse_local_date",
]
