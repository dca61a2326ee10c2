# src/granular/core/schema.py
"""Column classification and the per-driver schema cache."""

import re
import threading
from concurrent.futures import Future
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.types import NullType, TypeEngine
from sqlalchemy.sql import sqltypes

from .config import GranularConfig
from .errors import SchemaIntrospectionFailure, UnknownTable
from .introspection.base import IntrospectorABC
from .logging import color_palette, log
from .models.schema import ColumnMeta, DriverSchema, RawColumn, TableSchema

# Checked in order: Enum before String, Float before Numeric.
_TYPE_CATEGORIES = [
    (sqltypes.Boolean, "boolean"),
    (sqltypes.Enum, "enum"),
    (sqltypes.Integer, "integer"),
    (sqltypes.Float, "float"),
    (sqltypes.Numeric, "numeric"),
    (sqltypes.DateTime, "datetime"),
    (sqltypes.Date, "date"),
    (sqltypes.Time, "time"),
    (sqltypes.Interval, "interval"),
    (sqltypes.JSON, "json"),
    (sqltypes.ARRAY, "array"),
    (sqltypes.Uuid, "uuid"),
    ((sqltypes.LargeBinary, sqltypes.BINARY, sqltypes.VARBINARY), "binary"),
    (sqltypes.String, "string"),
]

_NAME_CATEGORIES = {
    "int": "integer",
    "integer": "integer",
    "bigint": "integer",
    "smallint": "integer",
    "tinyint": "integer",
    "mediumint": "integer",
    "bool": "boolean",
    "boolean": "boolean",
    "float": "float",
    "double": "float",
    "double precision": "float",
    "real": "float",
    "decimal": "numeric",
    "numeric": "numeric",
    "datetime": "datetime",
    "timestamp": "datetime",
    "timestamptz": "datetime",
    "date": "date",
    "time": "time",
    "interval": "interval",
    "blob": "binary",
    "binary": "binary",
    "varbinary": "binary",
    "bytea": "binary",
    "json": "json",
    "jsonb": "json",
    "uuid": "uuid",
}


def type_name(sql_type: Any) -> str:
    """Lowercase type name without length/precision arguments."""
    if isinstance(sql_type, TypeEngine):
        name = getattr(sql_type, "__visit_name__", type(sql_type).__name__)
    else:
        name = str(sql_type)
    return re.sub(r"\(.*\)", "", name).strip().lower()


def categorize(table: str, column: RawColumn, overrides: Dict[str, str]) -> str:
    """Map a reflected column type to a classification category.

    Overrides win, keyed by ``table.column`` or by type name. Unrecognized
    SQLAlchemy types raise ``SchemaIntrospectionFailure``.
    """
    name = type_name(column.type)
    qualified = f"{table}.{column.name}".lower()
    if qualified in overrides:
        return overrides[qualified]
    if name in overrides:
        return overrides[name]

    if isinstance(column.type, NullType):
        raise SchemaIntrospectionFailure(
            f"Cannot classify column '{table}.{column.name}': its type was not recognized. "
            f"Add '{table}.{column.name}' to the driver's type_overrides."
        )
    if isinstance(column.type, TypeEngine):
        for types, category in _TYPE_CATEGORIES:
            if isinstance(column.type, types):
                return category
        return name
    if not name:
        raise SchemaIntrospectionFailure(f"Column '{table}.{column.name}' has no type.")
    return _NAME_CATEGORIES.get(name, name)


def classify_columns(
    table: str,
    driver: str,
    columns: Iterable[RawColumn],
    config: GranularConfig,
) -> TableSchema:
    overrides = config.overrides_for(driver)
    non_string = {c.lower() for c in config.non_string_for(driver)}
    metas: Dict[str, ColumnMeta] = {}
    for column in columns:
        category = categorize(table, column, overrides)
        metas[column.name] = ColumnMeta(
            name=column.name,
            category=category,
            is_string_like=category not in non_string,
        )
    return TableSchema(name=table, driver=driver, columns=metas)


class SchemaProvider:
    """Memoized, read-only column metadata per driver.

    Each driver is introspected at most once for the lifetime of the
    provider. Concurrent callers during the first population wait on the
    same in-flight result; a failed population is not cached.
    """

    def __init__(self, introspector: IntrospectorABC, config: Optional[GranularConfig] = None):
        self.introspector = introspector
        self.config = config or GranularConfig()
        self._lock = threading.Lock()
        self._futures: Dict[str, "Future[DriverSchema]"] = {}

    def driver_schema(self, driver: str) -> DriverSchema:
        with self._lock:
            future = self._futures.get(driver)
            owner = future is None
            if owner:
                future = Future()
                self._futures[driver] = future

        if not owner:
            return future.result()

        try:
            schema = self._load(driver)
        except BaseException as exc:
            with self._lock:
                del self._futures[driver]
            future.set_exception(exc)
            raise
        future.set_result(schema)
        return schema

    def _load(self, driver: str) -> DriverSchema:
        if not self.config.is_driver_allowed(driver):
            raise UnknownTable("*", driver)

        type_names = [name for name in self.config.overrides_for(driver) if "." not in name]
        self.introspector.register_type_names(driver, type_names)

        with log.timed(f"Schema introspection for {driver}"):
            tables: Dict[str, TableSchema] = {}
            for table in self.introspector.list_tables(driver):
                columns = self.introspector.list_columns(driver, table)
                tables[table] = classify_columns(table, driver, columns, self.config)

        log.info(f"Cached schema of {len(tables)} tables for {color_palette['driver'](driver)}")
        return MappingProxyType(tables)

    def table(self, driver: str, table: str) -> TableSchema:
        try:
            return self.driver_schema(driver)[table]
        except KeyError:
            raise UnknownTable(table, driver) from None

    def has_table(self, driver: str, table: str) -> bool:
        return table in self.driver_schema(driver)

    def has_column(self, driver: str, table: str, column: str) -> bool:
        schema = self.driver_schema(driver).get(table)
        return schema is not None and schema.has_column(column)

    def column_names(self, driver: str, table: str, excluded: Iterable[str] = ()) -> List[str]:
        """Searchable columns: the table's columns minus excluded keys and the q alias."""
        skip = set(excluded) | {self.config.q_alias}
        return [name for name in self.table(driver, table).column_names() if name not in skip]
