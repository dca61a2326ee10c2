"""FastAPI integration: request parameters, route dependencies and error handlers."""

from .dependencies import SearchDependency
from .errors import register_error_handlers
from .params import parse_query_pairs, request_params

__all__ = ["SearchDependency", "register_error_handlers", "parse_query_pairs", "request_params"]
