# src/granular/core/errors.py
"""Exception taxonomy for the search compiler.

Every error is fatal for the compile call that raised it and propagates to
the caller. The HTTP layer maps ``status_code`` onto the response.
"""


class GranularError(Exception):
    """Base class for all granular search errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(GranularError):
    """Raw input is not a key-unique mapping, or a value cannot be parsed."""

    status_code = 400


class UnknownTable(GranularError):
    """The target table is absent from the introspected schema."""

    status_code = 404

    def __init__(self, table: str, driver: str):
        super().__init__(f"Table '{table}' does not exist for driver '{driver}'.")
        self.table = table
        self.driver = driver


class UnknownRelation(GranularError):
    """A relation is not allowed, or does not resolve to a searchable entity."""

    status_code = 400


class UnknownEntity(UnknownRelation):
    """An entity name is not present in the registry."""

    def __init__(self, entity: str):
        super().__init__(f"Entity '{entity}' is not registered as searchable.")
        self.entity = entity


class SchemaIntrospectionFailure(GranularError):
    """A column type could not be classified.

    Fix it by adding the type (or ``table.column``) to the driver's
    ``type_overrides`` configuration.
    """

    status_code = 500


class ConfigurationError(GranularError):
    """The relation graph recursed past the configured maximum depth."""

    status_code = 500
