"""
granular-search: compile request parameters into relation-aware search predicates.
"""

from .core.compiler import SearchCompiler
from .core.config import GranularConfig
from .core.errors import (
    ConfigurationError,
    GranularError,
    InvalidInput,
    SchemaIntrospectionFailure,
    UnknownEntity,
    UnknownRelation,
    UnknownTable,
)
from .core.introspection import MappingIntrospector, SqlAlchemyIntrospector
from .core.models import CompiledSearch, Entity, EntityRegistry, EntitySearchSpec, Relation, Secondary
from .core.params import ParameterBag, normalize
from .core.query import QueryBuilder
from .core.schema import SchemaProvider

__version__ = "0.1.0"

__all__ = [
    "SearchCompiler",
    "GranularConfig",
    "SchemaProvider",
    "MappingIntrospector",
    "SqlAlchemyIntrospector",
    "EntityRegistry",
    "Entity",
    "EntitySearchSpec",
    "Relation",
    "Secondary",
    "CompiledSearch",
    "ParameterBag",
    "normalize",
    "QueryBuilder",
    "GranularError",
    "InvalidInput",
    "UnknownTable",
    "UnknownRelation",
    "UnknownEntity",
    "SchemaIntrospectionFailure",
    "ConfigurationError",
]
