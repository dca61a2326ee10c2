# src/granular/core/query/predicates.py
"""Compiles one entity's parameter bag into a predicate tree."""

import re
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from ..models.predicates import Condition, Connective, Group, PredicateNode
from ..models.schema import TableSchema
from ..params import ParameterBag

_NUMERIC = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


def is_numeric(value: Any) -> bool:
    """Numbers and numeric strings. Booleans are not numeric."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and _NUMERIC.match(value) is not None


def like_pattern(value: Any) -> str:
    """Wildcard pattern matching the alphanumerics of ``value`` in order.

    >>> like_pattern("AB1")
    '%A%B%1%'
    >>> like_pattern("a-b")
    '%a%b%'
    """
    kept = "".join(f"{ch}%" for ch in str(value) if ch.isalnum())
    return f"%{kept}" if kept else ""


def _skipped(value: Any, string_like: bool) -> bool:
    # A word compared against a numeric/date/binary column is never a valid match
    return isinstance(value, str) and not string_like and not is_numeric(value)


def make_condition(column: str, value: Any, string_like: bool, like: bool = False) -> Optional[Condition]:
    """Leaf for one scalar value, or ``None`` when nothing should be emitted."""
    if _skipped(value, string_like):
        return None
    if value is None:
        return Condition(column=column, operator="IS NULL")
    if isinstance(value, bool):
        return Condition(column=column, operator="=", value=int(value))
    if like:
        pattern = like_pattern(value)
        return Condition(column=column, operator="LIKE", value=pattern) if pattern else None
    return Condition(column=column, operator="=", value=value)


def any_like(column: str, values: Iterable[Any], string_like: bool) -> Group:
    """OR-group of LIKE leaves, one per value."""
    leaves: List[PredicateNode] = []
    for value in values:
        leaf = make_condition(column, value, string_like, like=True)
        if leaf is not None:
            leaves.append(leaf)
    return Group.of("OR", leaves)


def any_equal(column: str, values: Iterable[Any], string_like: bool) -> Group:
    """``column IN (...)``; nulls become ``IS NULL`` alternatives."""
    kept: List[Any] = []
    has_null = False
    for value in values:
        if _skipped(value, string_like):
            continue
        if value is None:
            has_null = True
        else:
            kept.append(int(value) if isinstance(value, bool) else value)

    nodes: List[PredicateNode] = []
    if kept:
        nodes.append(Condition(column=column, operator="IN", value=kept))
    if has_null:
        nodes.append(Condition(column=column, operator="IS NULL"))
    return Group.of("OR", nodes)


def partition_columns(
    columns: Sequence[str],
    like_keys: Iterable[str],
    params: ParameterBag,
    accept_q: bool,
) -> Tuple[List[str], List[str]]:
    """Split searchable columns into the LIKE and EXACT groups.

    With a broad q search every column takes part; otherwise only columns
    the request names explicitly.
    """
    column_set = set(columns)
    if accept_q:
        like = [key for key in dict.fromkeys(like_keys) if key in column_set]
        exact = [col for col in columns if col not in like]
    else:
        like_set = set(like_keys)
        requested = [key for key in params.keys() if key in column_set]
        like = [key for key in requested if key in like_set]
        exact = [key for key in requested if key not in like_set]
    return like, exact


def build_predicate(
    table: TableSchema,
    columns: Sequence[str],
    like_keys: Iterable[str],
    params: ParameterBag,
    accept_q: bool,
    force_or: bool = False,
    force_like: bool = False,
    q_alias: str = "q",
) -> Group:
    """Predicate for a single entity.

    Args:
        table: Column metadata of the entity's table
        columns: Searchable columns (excluded keys and the q alias removed)
        like_keys: Columns matched with LIKE instead of equality
        params: Normalized parameters of this entity's scope
        accept_q: Whether a filled q alias drives a broad search
        force_or: Join per-column conditions with OR
        force_like: Match exact-group columns with LIKE

    Returns:
        ``AND(like_group, exact_group)``; an empty group when nothing applies
    """
    if not params:
        return Group()

    like_cols, exact_cols = partition_columns(columns, like_keys, params, accept_q)
    connective: Connective = "OR" if accept_q or force_or else "AND"
    q_value = params.get(q_alias) if accept_q else None

    like_nodes: List[PredicateNode] = []
    for col in like_cols:
        value = params.get(col, q_value) if accept_q else params.get(col)
        string_like = table.is_string_like(col)
        if isinstance(value, list):
            like_nodes.append(any_like(col, value, string_like))
        else:
            leaf = make_condition(col, value, string_like, like=True)
            if leaf is not None:
                like_nodes.append(leaf)

    exact_nodes: List[PredicateNode] = []
    for col in exact_cols:
        value = params.get(col, q_value) if accept_q else params.get(col)
        string_like = table.is_string_like(col)
        if isinstance(value, list):
            group = any_like(col, value, string_like) if force_like else any_equal(col, value, string_like)
            exact_nodes.append(group)
        else:
            leaf = make_condition(col, value, string_like, like=force_like)
            if leaf is not None:
                exact_nodes.append(leaf)

    return Group.of("AND", [Group.of(connective, like_nodes), Group.of(connective, exact_nodes)])
