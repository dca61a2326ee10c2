# src/granular/core/compiler.py
"""Entry point: compiles request parameters for an entity and its relations."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Set, Union

import humps
import inflection

from .config import GranularConfig
from .errors import ConfigurationError
from .logging import color_palette, log
from .models.entities import Entity, EntityRegistry
from .models.predicates import CompiledSearch, Connective, Group, RelationFilter
from .models.schema import TableSchema
from .params import ParameterBag, normalize, search_input
from .query.predicates import build_predicate
from .query.sorting import resolve_sort
from .query.timerange import resolve_time_range
from .schema import SchemaProvider

Q_RELATIONS_KEY = "q_relations"


def scope_key(relation: str) -> str:
    """Parameter namespace of a relation: ``blogPosts`` -> ``blog_post``."""
    return humps.decamelize(inflection.singularize(relation))


@dataclass
class SearchContext:
    """State of one top-level compile call, passed down every recursive call."""

    max_depth: int
    force_or: bool = False
    force_like: bool = False
    q_search_relationships: bool = False
    requested_q_relations: FrozenSet[str] = frozenset()
    visited: Set[str] = field(default_factory=set)

    def visit(self, entity: Entity) -> None:
        self.visited.add(entity.name)

    def is_visited(self, entity: Entity) -> bool:
        return entity.name in self.visited

    def check_depth(self, depth: int, entity: Entity) -> None:
        if depth > self.max_depth:
            raise ConfigurationError(
                f"Relation search exceeded the maximum depth of {self.max_depth} at {entity.name}."
            )


class SearchCompiler:
    """Compiles untyped request parameters into a ``CompiledSearch``.

    Args:
        registry: Searchable entities and their relations
        schema: Column metadata source
        driver: Driver id whose schema the entities live in
        config: Overrides the schema provider's configuration
    """

    def __init__(
        self,
        registry: EntityRegistry,
        schema: SchemaProvider,
        driver: str,
        config: Optional[GranularConfig] = None,
    ):
        self.registry = registry
        self.schema = schema
        self.driver = driver
        self.config = config or schema.config

    @property
    def q_alias(self) -> str:
        return self.config.q_alias

    def _table(self, entity: Entity) -> TableSchema:
        return self.schema.table(self.driver, entity.table)

    def _columns(self, entity: Entity) -> List[str]:
        return self.schema.column_names(self.driver, entity.table, entity.spec.excluded_keys)

    def _context(self, bag: ParameterBag, q_search_relationships: bool, force_or: bool, force_like: bool) -> SearchContext:
        requested = bag.get(Q_RELATIONS_KEY) or []
        if isinstance(requested, str):
            requested = [requested]
        return SearchContext(
            max_depth=self.config.max_depth,
            force_or=force_or,
            force_like=force_like,
            q_search_relationships=q_search_relationships,
            requested_q_relations=frozenset(r for r in requested if isinstance(r, str)),
        )

    def _is_q_relation(self, entity: Entity, relation: str, ctx: SearchContext) -> bool:
        return relation in entity.spec.q_relations or relation in ctx.requested_q_relations

    def _q_propagates(self, entity: Entity, relation: str, ctx: SearchContext) -> bool:
        return ctx.q_search_relationships or self._is_q_relation(entity, relation, ctx)

    # --- public API ---
    def compile(
        self,
        entity: str,
        raw: Any,
        *,
        q_search_relationships: bool = False,
        ignore_q: bool = False,
        force_or: bool = False,
        force_like: bool = False,
        now: Optional[Callable[[], datetime]] = None,
    ) -> CompiledSearch:
        """Compile a search over ``entity`` and its allowed relations.

        ``raw`` is a mapping of request parameters; a bare value searches the
        q alias. Sorting and time range are resolved for the top-level
        entity only.

        ``q_search_relationships`` carries q into every allowed relation, but
        a relation filter only joins with OR when the relation is a q
        relation (the entity's ``q_relations`` or the request's
        ``q_relations`` parameter); otherwise related rows must match too.
        """
        target = self.registry.get(entity)
        bag = search_input(raw, self.q_alias)
        ctx = self._context(bag, q_search_relationships, force_or, force_like)

        log.debug(f"Compiling search for {color_palette['entity'](target.name)}")
        with log.timed(f"Search compilation for {target.name}"):
            predicate = self._compile_entity(target, bag, ctx, 0, ignore_q)

        top = normalize(bag, q_alias=self.q_alias)
        columns = self._table(target).column_names()
        sort = resolve_sort(top, columns, target.spec.nulls_first)
        time_range = resolve_time_range(
            top,
            target.spec.time_column or self.config.default_time_column,
            target.spec.time_zone or self.config.default_time_zone,
            columns,
            now=now,
        )

        return CompiledSearch(
            entity=target.name,
            table=target.table,
            predicate=predicate,
            sort=sort,
            time_range=time_range,
            visited=sorted(ctx.visited),
        )

    def compile_relation(
        self,
        entity: str,
        relation: str,
        raw: Any,
        prepend_key: Optional[str] = None,
        *,
        ignore_q: bool = False,
        force_or: bool = False,
        force_like: bool = False,
    ) -> CompiledSearch:
        """Filter ``entity`` by one relation, using the relation's parameters.

        ``prepend_key`` defaults to the relation's scope key; pass ``""`` when
        the parameters are already scoped.
        """
        source = self.registry.get(entity)
        declared, target = self.registry.relation(source, relation)
        bag = ParameterBag.coerce(raw)
        ctx = self._context(bag, False, force_or, force_like)
        ctx.visit(source)

        prefix = scope_key(relation) if prepend_key is None else prepend_key
        scoped = normalize(bag, (), prefix, ignore_q, self.q_alias)

        predicate = Group()
        if scoped:
            inner = self._compile_entity(target, scoped, ctx, 1, ignore_q)
            predicate = Group.of("AND", [RelationFilter(relation=declared, target_table=target.table, predicate=inner)])

        return CompiledSearch(entity=source.name, table=source.table, predicate=predicate, visited=sorted(ctx.visited))

    def of_relation(
        self,
        entity: str,
        relation: str,
        key: Union[str, Iterable[str]],
        value: Any,
        force_or: bool = False,
    ) -> CompiledSearch:
        """Rows of ``entity`` with a related row where ``key`` (or each of the keys) matches ``value``."""
        source = self.registry.get(entity)
        declared, target = self.registry.relation(source, relation)
        keys = [key] if isinstance(key, str) else list(key)
        params = normalize({k: value for k in keys}, target.spec.excluded_keys, q_alias=self.q_alias)

        inner = build_predicate(
            self._table(target),
            self._columns(target),
            target.spec.like_keys,
            params,
            accept_q=False,
            force_or=force_or,
            q_alias=self.q_alias,
        )
        node = RelationFilter(relation=declared, target_table=target.table, predicate=inner)
        return CompiledSearch(
            entity=source.name,
            table=source.table,
            predicate=Group.of("AND", [node]),
            visited=sorted({source.name, target.name}),
        )

    def should_search(self, entity: str, raw: Any, ignore_q: bool = False) -> bool:
        """Whether ``raw`` holds anything that filters ``entity`` or one of its relations."""
        target = self.registry.get(entity)
        bag = normalize(raw, (), "", ignore_q, self.q_alias)
        ctx = self._context(bag, False, False, False)
        return self._should_search(target, bag, ctx, ignore_q, 0, frozenset())

    # --- recursion ---
    def _compile_entity(self, entity: Entity, raw: ParameterBag, ctx: SearchContext, depth: int, ignore_q: bool) -> Group:
        ctx.check_depth(depth, entity)

        data = normalize(raw, entity.spec.excluded_keys, "", ignore_q, self.q_alias)
        accept_q = not ignore_q and data.filled(self.q_alias)
        predicate = build_predicate(
            self._table(entity),
            self._columns(entity),
            entity.spec.like_keys,
            data,
            accept_q,
            ctx.force_or,
            ctx.force_like,
            self.q_alias,
        )
        ctx.visit(entity)

        for relation_name in entity.spec.allowed_relations:
            declared, target = self.registry.relation(entity, relation_name)
            propagate_q = not ignore_q and self._q_propagates(entity, relation_name, ctx)
            scoped = normalize(raw, (), scope_key(relation_name), not propagate_q, self.q_alias)

            if not scoped:
                continue
            if scoped.only(self.q_alias) and ctx.is_visited(target):
                continue
            if not self._should_search(target, scoped, ctx, not propagate_q, depth + 1, frozenset()):
                continue

            log.debug(
                f"Searching {color_palette['entity'](entity.name)}."
                f"{color_palette['relation'](relation_name)} with {', '.join(scoped.keys())}"
            )
            inner = self._compile_entity(target, scoped, ctx, depth + 1, not propagate_q)
            node = RelationFilter(relation=declared, target_table=target.table, predicate=inner)
            either = (
                propagate_q
                and scoped.filled(self.q_alias)
                and self._is_q_relation(entity, relation_name, ctx)
            )
            connective: Connective = "OR" if either else "AND"
            predicate = Group.of(connective, [predicate, node])

        return predicate

    def _should_search(
        self,
        entity: Entity,
        bag: ParameterBag,
        ctx: SearchContext,
        ignore_q: bool,
        depth: int,
        path: FrozenSet[str],
    ) -> bool:
        ctx.check_depth(depth, entity)
        # explicit keys lose a prefix per hop; only a lone q can cycle forever
        if entity.name in path and bag.only(self.q_alias):
            return False

        columns = set(self._columns(entity))
        if any(key in columns for key in bag.keys()):
            return True

        if not ignore_q and bag.only(self.q_alias) and not ctx.is_visited(entity):
            return True

        path = path | {entity.name}
        for relation_name in entity.spec.allowed_relations:
            _, target = self.registry.relation(entity, relation_name)
            propagate_q = not ignore_q and self._q_propagates(entity, relation_name, ctx)
            scoped = normalize(bag, (), scope_key(relation_name), not propagate_q, self.q_alias)
            if scoped and self._should_search(target, scoped, ctx, not propagate_q, depth + 1, path):
                return True
        return False
