# src/granular/api/dependencies.py
from typing import Any, Callable, Optional

from fastapi import Depends

from ..core.compiler import SearchCompiler
from ..core.models.predicates import CompiledSearch
from ..core.params import ParameterBag
from .params import request_params


class SearchDependency:
    """
    Route dependency compiling the query string into a search over one entity.

    Example:
        users_search = SearchDependency(compiler, "User", q_search_relationships=True)

        @app.get("/users")
        def list_users(search: CompiledSearch = Depends(users_search)): ...
    """

    def __init__(
        self,
        compiler: SearchCompiler,
        entity: str,
        *,
        q_search_relationships: bool = False,
        force_or: bool = False,
        force_like: bool = False,
        now: Optional[Callable[[], Any]] = None,
    ):
        self.compiler = compiler
        self.entity = entity
        self.q_search_relationships = q_search_relationships
        self.force_or = force_or
        self.force_like = force_like
        self.now = now

    def __call__(self, params: ParameterBag = Depends(request_params)) -> CompiledSearch:
        return self.compiler.compile(
            self.entity,
            params,
            q_search_relationships=self.q_search_relationships,
            force_or=self.force_or,
            force_like=self.force_like,
            now=self.now,
        )
