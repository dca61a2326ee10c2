# src/granular/core/models/schema.py
"""Column metadata: raw reflected columns and their classified form."""

from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict


class RawColumn(BaseModel):
    """A column as reported by an introspector, before classification."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    type: Any  # sqlalchemy TypeEngine or a plain type name


class ColumnMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    is_string_like: bool


class TableSchema(BaseModel):
    """Ordered column metadata of one table."""

    model_config = ConfigDict(frozen=True)

    name: str
    driver: str
    columns: Dict[str, ColumnMeta] = {}

    def column_names(self) -> List[str]:
        return list(self.columns)

    def has_column(self, column: str) -> bool:
        return column in self.columns

    def is_string_like(self, column: str) -> bool:
        meta = self.columns.get(column)
        return meta.is_string_like if meta else True


# Read-only view of a driver's tables
DriverSchema = Mapping[str, TableSchema]
