# src/granular/api/params.py
from fastapi import Request

from ..core.params import ParameterBag, parse_query_pairs

__all__ = ["parse_query_pairs", "request_params"]


async def request_params(request: Request) -> ParameterBag:
    """FastAPI dependency: the request's query string as a ParameterBag."""
    return parse_query_pairs(request.query_params.multi_items())
