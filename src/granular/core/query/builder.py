# src/granular/core/query/builder.py
from typing import List, Optional

from sqlalchemy import MetaData, Table, and_, case, literal, or_, select
from sqlalchemy.sql.expression import ColumnElement, FromClause, Select

from ..errors import UnknownTable
from ..models.predicates import CompiledSearch, Condition, Group, PredicateNode, RelationFilter, SortKey, TimeRange
from .operators import NULLARY_OPERATORS, OPERATOR_MAP


class QueryBuilder:
    """
    Applies a compiled search to a SQLAlchemy select statement.

    Statements are only built here, never executed.
    """
    def __init__(self, metadata: MetaData):
        self.metadata = metadata

    def table(self, name: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is not None:
            return table
        for candidate in self.metadata.tables.values():
            if candidate.name == name:
                return candidate
        raise UnknownTable(name, "metadata")

    def build(self, compiled: CompiledSearch, statement: Optional[Select] = None) -> Select:
        """
        Applies the predicate, time range and sorting of ``compiled``.
        """
        source = self.table(compiled.table)
        query = statement if statement is not None else select(source)

        where = self.clause(compiled.predicate, source)
        if where is not None:
            query = query.where(where)

        if compiled.time_range is not None:
            query = query.where(self.time_clause(compiled.time_range, source))

        order_by = self.order_by(compiled.sort, source)
        if order_by:
            query = query.order_by(*order_by)
        return query

    def clause(self, node: PredicateNode, source: FromClause) -> Optional[ColumnElement]:
        if isinstance(node, Condition):
            column = source.c[node.column]
            method = getattr(column, OPERATOR_MAP[node.operator])
            if node.operator in NULLARY_OPERATORS:
                return method(None)
            return method(node.value)

        if isinstance(node, Group):
            parts = [part for part in (self.clause(child, source) for child in node.children) if part is not None]
            if not parts:
                return None
            if len(parts) == 1:
                return parts[0]
            return and_(*parts) if node.connective == "AND" else or_(*parts)

        if isinstance(node, RelationFilter):
            return self.exists(node, source)

        raise TypeError(f"Unsupported predicate node: {type(node).__name__}")

    def exists(self, node: RelationFilter, source: FromClause) -> ColumnElement:
        """Correlated EXISTS over the related rows; the target is aliased for self-relations."""
        relation = node.relation
        target = self.table(node.target_table).alias()

        if relation.secondary is not None:
            secondary = self.table(relation.secondary.table).alias()
            subquery = (
                select(literal(1))
                .select_from(
                    secondary.join(target, secondary.c[relation.secondary.remote_key] == target.c[relation.remote_key])
                )
                .where(secondary.c[relation.secondary.local_key] == source.c[relation.local_key])
            )
        else:
            subquery = (
                select(literal(1))
                .select_from(target)
                .where(target.c[relation.remote_key] == source.c[relation.local_key])
            )

        inner = self.clause(node.predicate, target)
        if inner is not None:
            subquery = subquery.where(inner)
        return subquery.exists()

    def time_clause(self, time_range: TimeRange, source: FromClause) -> ColumnElement:
        column = source.c[time_range.column]
        if time_range.start is not None and time_range.end is not None:
            return column.between(time_range.start, time_range.end)
        if time_range.start is not None:
            return column >= time_range.start
        return column <= time_range.end

    def order_by(self, keys: List[SortKey], source: FromClause) -> List[ColumnElement]:
        clauses: List[ColumnElement] = []
        for key in keys:
            column = source.c[key.column]
            # nulls grouped ahead of the column itself
            is_present = case((column.is_(None), 0), else_=1)
            clauses.append(is_present.asc() if key.nulls_first else is_present.desc())
            clauses.append(column.desc() if key.descending else column.asc())
        return clauses
