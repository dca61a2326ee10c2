# src/granular/core/models/predicates.py
"""Backend-neutral output of the search compiler."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .entities import Relation

Connective = Literal["AND", "OR"]
Operator = Literal["=", "LIKE", "IN", "IS NULL"]


class Condition(BaseModel):
    """A single column comparison."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["condition"] = "condition"
    column: str
    operator: Operator
    value: Any = None

    def render(self) -> str:
        if self.operator == "IS NULL":
            return f"{self.column} IS NULL"
        if self.operator == "IN":
            return f"{self.column} IN ({', '.join(_literal(v) for v in self.value)})"
        return f"{self.column} {self.operator} {_literal(self.value)}"


class Group(BaseModel):
    """Connective over child nodes. An empty group matches everything."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["group"] = "group"
    connective: Connective = "AND"
    children: List["PredicateNode"] = []

    @classmethod
    def of(cls, connective: Connective, nodes: List["PredicateNode"]) -> "Group":
        """Compose nodes, dropping no-op groups and flattening same-connective groups."""
        children: List[PredicateNode] = []
        for node in nodes:
            while isinstance(node, Group) and len(node.children) == 1:
                node = node.children[0]
            if isinstance(node, Group):
                if node.is_empty:
                    continue
                if node.connective == connective:
                    children.extend(node.children)
                    continue
            children.append(node)
        return cls(connective=connective, children=children)

    @property
    def is_empty(self) -> bool:
        return not self.children

    def columns(self) -> List[str]:
        """Columns compared directly by this group, excluding relation filters."""
        found: List[str] = []
        for child in self.children:
            if isinstance(child, Condition):
                found.append(child.column)
            elif isinstance(child, Group):
                found.extend(child.columns())
        return found

    def render(self) -> str:
        if self.is_empty:
            return "TRUE"
        parts = []
        for child in self.children:
            text = child.render()
            parts.append(f"({text})" if isinstance(child, Group) and len(child.children) > 1 else text)
        return f" {self.connective} ".join(parts)


class RelationFilter(BaseModel):
    """Semi-join: rows having at least one related ``target`` row matching ``predicate``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["relation"] = "relation"
    relation: Relation
    target_table: str
    predicate: Group = Field(default_factory=Group)

    def render(self) -> str:
        return f"EXISTS {self.relation.name}({self.predicate.render()})"


PredicateNode = Union[Condition, Group, RelationFilter]
Group.model_rebuild()


class SortKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str
    descending: bool = False
    nulls_first: bool = False


class TimeRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    timezone: str


class CompiledSearch(BaseModel):
    """Everything a query backend needs to apply one search."""

    model_config = ConfigDict(frozen=True)

    entity: str
    table: str
    predicate: Group = Field(default_factory=Group)
    sort: List[SortKey] = []
    time_range: Optional[TimeRange] = None
    visited: List[str] = []

    def describe(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def _literal(value: Any) -> str:
    if isinstance(value, str):
        escaped = value.replace("'", "''")
        return f"'{escaped}'"
    return str(value)
