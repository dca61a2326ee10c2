# src/granular/core/query/sorting.py
"""Ordering requested through ``sort``, ``sortBy`` and ``sortByDesc``."""

import re
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Tuple

from ..logging import log
from ..models.predicates import SortKey
from ..params import ParameterBag

SORT_KEYS = ("sort", "sortBy", "sortByDesc")

_DIRECTION = re.compile(r"asc|desc", re.IGNORECASE)


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _parse_sort_entries(value: Any) -> List[Tuple[str, bool]]:
    """Read ``sort`` entries as ``(column, descending)`` pairs, in order."""
    if isinstance(value, Mapping):
        entries: List[Any] = [{k: v} for k, v in value.items()]
    else:
        entries = _as_list(value)

    parsed: List[Tuple[str, bool]] = []
    for entry in entries:
        if isinstance(entry, str):
            parsed.append((entry, False))
            continue
        if isinstance(entry, Mapping) and len(entry) == 1:
            column, direction = next(iter(entry.items()))
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            column, direction = entry
        else:
            log.debug(f"Skipping sort entry {entry!r}")
            continue
        if not isinstance(column, str) or not isinstance(direction, str):
            continue
        if not _DIRECTION.fullmatch(direction.strip()):
            log.debug(f"Skipping sort entry with direction {direction!r}")
            continue
        parsed.append((column, direction.strip().lower() == "desc"))
    return parsed


def resolve_sort(params: ParameterBag, columns: Iterable[str], nulls_first: bool = False) -> List[SortKey]:
    """Sort keys requested by ``sort``, ``sortBy`` or ``sortByDesc``.

    The first filled key wins. Columns outside the table are dropped.
    """
    requested: Optional[List[Tuple[str, bool]]] = None
    if params.filled("sort"):
        requested = _parse_sort_entries(params.get("sort"))
    elif params.filled("sortBy"):
        requested = [(col, False) for col in _as_list(params.get("sortBy")) if isinstance(col, str)]
    elif params.filled("sortByDesc"):
        requested = [(col, True) for col in _as_list(params.get("sortByDesc")) if isinstance(col, str)]

    if not requested:
        return []

    known = set(columns)
    keys: List[SortKey] = []
    for column, descending in requested:
        if column not in known:
            log.debug(f"Dropping unknown sort column '{column}'")
            continue
        keys.append(SortKey(column=column, descending=descending, nulls_first=nulls_first))
    return keys
