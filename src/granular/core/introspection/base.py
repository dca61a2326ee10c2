# src/granular/core/introspection/base.py
"""Introspector contract and a static, mapping-backed implementation."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping

from ..errors import UnknownTable
from ..models.schema import RawColumn


class IntrospectorABC(ABC):
    """Reads raw column listings from a database, per driver."""

    @abstractmethod
    def list_tables(self, driver: str) -> List[str]:
        ...

    @abstractmethod
    def list_columns(self, driver: str, table: str) -> List[RawColumn]:
        ...

    def register_type_names(self, driver: str, names: Iterable[str]) -> None:
        """Make column types named in ``names`` reportable by ``driver``.

        Called before the driver is listed, with the override type names.
        """


class MappingIntrospector(IntrospectorABC):
    """Serves a static ``{driver: {table: {column: type}}}`` description.

    Types may be SQLAlchemy type objects or plain type names such as
    ``"integer"`` or ``"varchar"``.
    """

    def __init__(self, structure: Mapping[str, Mapping[str, Mapping[str, Any]]]):
        self.structure: Dict[str, Dict[str, Dict[str, Any]]] = {
            driver: {table: dict(cols) for table, cols in tables.items()}
            for driver, tables in structure.items()
        }

    def list_tables(self, driver: str) -> List[str]:
        return list(self.structure.get(driver, {}))

    def list_columns(self, driver: str, table: str) -> List[RawColumn]:
        try:
            columns = self.structure[driver][table]
        except KeyError:
            raise UnknownTable(table, driver) from None
        return [RawColumn(name=name, type=type_) for name, type_ in columns.items()]
