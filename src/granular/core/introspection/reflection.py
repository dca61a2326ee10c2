# src/granular/core/introspection/reflection.py
"""Live introspection through ``sqlalchemy.inspect``."""

from typing import Dict, Iterable, List, Optional, Type

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.types import NullType

from ..errors import UnknownTable
from ..models.schema import RawColumn
from .base import IntrospectorABC


class ReportedType(NullType):
    """A column type the dialect has no model for, kept under the name the database reports."""

    def __init__(self, *args, **kwargs):
        pass


def reported_type(name: str) -> Type[ReportedType]:
    """``ReportedType`` subclass whose visit name is ``name`` (``point``, ``geometry``, ...)."""
    name = name.lower()
    return type(f"Reported_{name}", (ReportedType,), {"__visit_name__": name})


class SqlAlchemyIntrospector(IntrospectorABC):
    """Introspector backed by SQLAlchemy's runtime inspection API.

    One engine per driver; the driver id is the dialect name
    (``sqlite``, ``postgresql``, ``mysql``, ...).
    """

    def __init__(self, engines: Iterable[Engine], schema: Optional[str] = None):
        self.engines: Dict[str, Engine] = {engine.dialect.name: engine for engine in engines}
        self.schema = schema

    def _engine(self, driver: str) -> Engine:
        try:
            return self.engines[driver]
        except KeyError:
            raise UnknownTable("*", driver) from None

    def register_type_names(self, driver: str, names: Iterable[str]) -> None:
        """Teach the engine's dialect to reflect ``names`` instead of falling back to ``NullType``.

        Types the dialect already knows are left as they are. The mapping is
        copied onto the dialect instance; other engines are not affected.
        """
        dialect = self._engine(driver).dialect
        known = dict(dialect.ischema_names)
        for name in names:
            reported = reported_type(name)
            # mysql and postgresql report lowercase names, sqlite uppercase
            for key in (name.lower(), name.upper()):
                known.setdefault(key, reported)
        dialect.ischema_names = known

    def list_tables(self, driver: str) -> List[str]:
        inspector = inspect(self._engine(driver))
        return inspector.get_table_names(schema=self.schema) + inspector.get_view_names(schema=self.schema)

    def list_columns(self, driver: str, table: str) -> List[RawColumn]:
        inspector = inspect(self._engine(driver))
        if not inspector.has_table(table, schema=self.schema):
            raise UnknownTable(table, driver)
        return [
            RawColumn(name=col["name"], type=col["type"])
            for col in inspector.get_columns(table, schema=self.schema)
        ]
