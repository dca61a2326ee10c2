"""Data models shared by the compiler and its backends."""

from .entities import Entity, EntityRegistry, EntitySearchSpec, Relation, Secondary
from .predicates import CompiledSearch, Condition, Group, RelationFilter, SortKey, TimeRange
from .schema import ColumnMeta, RawColumn, TableSchema

__all__ = [
    "Entity",
    "EntityRegistry",
    "EntitySearchSpec",
    "Relation",
    "Secondary",
    "CompiledSearch",
    "Condition",
    "Group",
    "RelationFilter",
    "SortKey",
    "TimeRange",
    "ColumnMeta",
    "RawColumn",
    "TableSchema",
]
