# src/granular/core/models/entities.py
"""Searchable entity declarations and their registry."""

from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import inspect as sa_inspect

from ..errors import UnknownEntity, UnknownRelation


class EntitySearchSpec(BaseModel):
    """Search behaviour of one entity type."""

    model_config = ConfigDict(frozen=True)

    excluded_keys: List[str] = []
    like_keys: List[str] = []
    allowed_relations: List[str] = []
    q_relations: List[str] = []
    time_column: Optional[str] = None  # falls back to GranularConfig.default_time_column
    time_zone: Optional[str] = None  # falls back to GranularConfig.default_time_zone
    nulls_first: bool = False


class Secondary(BaseModel):
    """Association table of a many-to-many relation."""

    model_config = ConfigDict(frozen=True)

    table: str
    local_key: str  # references the source entity's local_key
    remote_key: str  # references the target entity's remote_key


class Relation(BaseModel):
    """Statically declared relation accessor: how to reach ``target`` rows."""

    model_config = ConfigDict(frozen=True)

    name: str
    target: str
    local_key: str
    remote_key: str
    secondary: Optional[Secondary] = None


class Entity(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    table: str
    spec: EntitySearchSpec = Field(default_factory=EntitySearchSpec)
    relations: Dict[str, Relation] = {}


class EntityRegistry:
    """Maps entity names to their declarations."""

    def __init__(self, entities: Optional[List[Entity]] = None):
        self._entities: Dict[str, Entity] = {}
        for entity in entities or []:
            self.register(entity)

    def register(self, entity: Entity) -> Entity:
        self._entities[entity.name] = entity
        return entity

    def register_model(self, model: Any, spec: Optional[EntitySearchSpec] = None, name: Optional[str] = None) -> Entity:
        """Declare an entity from a SQLAlchemy mapped class.

        Accessors are read from the mapper for each relation named in
        ``spec.allowed_relations``. Relations the mapper does not have are
        left undeclared and reported when a search reaches them.
        """
        spec = spec or EntitySearchSpec()
        mapper = sa_inspect(model)
        relations: Dict[str, Relation] = {}

        for rel_name in spec.allowed_relations:
            prop = mapper.relationships.get(rel_name)
            if prop is None:
                continue
            target = prop.mapper.class_.__name__
            if prop.secondary is not None:
                # (source col, secondary col) and (target col, secondary col)
                local_col, sec_local = prop.synchronize_pairs[0]
                remote_col, sec_remote = prop.secondary_synchronize_pairs[0]
                relations[rel_name] = Relation(
                    name=rel_name,
                    target=target,
                    local_key=local_col.name,
                    remote_key=remote_col.name,
                    secondary=Secondary(
                        table=prop.secondary.name,
                        local_key=sec_local.name,
                        remote_key=sec_remote.name,
                    ),
                )
            else:
                local_col, remote_col = prop.local_remote_pairs[0]
                relations[rel_name] = Relation(
                    name=rel_name,
                    target=target,
                    local_key=local_col.name,
                    remote_key=remote_col.name,
                )

        return self.register(
            Entity(
                name=name or model.__name__,
                table=mapper.local_table.name,
                spec=spec,
                relations=relations,
            )
        )

    def get(self, name: str) -> Entity:
        try:
            return self._entities[name]
        except KeyError:
            raise UnknownEntity(name) from None

    def relation(self, entity: Entity, relation: str) -> Tuple[Relation, Entity]:
        """Resolve an allowed relation to its declaration and target entity."""
        if relation not in entity.spec.allowed_relations:
            raise UnknownRelation(
                f"'{relation}' is not included in the allowed relations of {entity.name}."
            )
        declared = entity.relations.get(relation)
        if declared is None:
            raise UnknownRelation(f"The {entity.name} entity does not declare the relation '{relation}'.")
        if declared.target not in self._entities:
            raise UnknownRelation(
                f"Relation '{relation}' of {entity.name} targets '{declared.target}', "
                "which is not a searchable entity."
            )
        return declared, self._entities[declared.target]

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)
