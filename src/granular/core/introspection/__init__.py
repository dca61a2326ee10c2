"""Schema introspectors feeding the schema provider."""

from .base import IntrospectorABC, MappingIntrospector
from .reflection import SqlAlchemyIntrospector

__all__ = ["IntrospectorABC", "MappingIntrospector", "SqlAlchemyIntrospector"]
