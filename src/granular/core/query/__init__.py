"""Predicate, sort and time-range compilation plus the SQLAlchemy sink."""

from .builder import QueryBuilder
from .predicates import build_predicate, like_pattern
from .sorting import resolve_sort
from .timerange import resolve_time_range

__all__ = ["QueryBuilder", "build_predicate", "like_pattern", "resolve_sort", "resolve_time_range"]
