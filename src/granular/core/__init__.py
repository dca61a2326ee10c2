"""Core of the granular search compiler."""

from .config import GranularConfig
from .errors import (
    ConfigurationError,
    GranularError,
    InvalidInput,
    SchemaIntrospectionFailure,
    UnknownEntity,
    UnknownRelation,
    UnknownTable,
)
from .logging import Logger, color_palette, log

__all__ = [
    "GranularConfig",
    "Logger",
    "log",
    "color_palette",
    "GranularError",
    "InvalidInput",
    "UnknownTable",
    "UnknownRelation",
    "UnknownEntity",
    "SchemaIntrospectionFailure",
    "ConfigurationError",
]
