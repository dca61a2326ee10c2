# examples/main.py
"""
granular-search demo: a small SQLite blog searchable through FastAPI.
"""

from typing import Any, Dict, List

from fastapi import Depends, FastAPI
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, create_engine, insert
from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.pool import StaticPool

from granular import (
    CompiledSearch,
    EntityRegistry,
    EntitySearchSpec,
    QueryBuilder,
    SchemaProvider,
    SearchCompiler,
    SqlAlchemyIntrospector,
)
from granular.api import SearchDependency, register_error_handlers
from granular.core.logging import log
from granular.ui import display_search, display_table_schema


class Base(DeclarativeBase):
    pass


class Author(Base):
    __tablename__ = "authors"

    id = Column(Integer, primary_key=True)
    name = Column(String(80))
    email = Column(String(120))
    created_at = Column(DateTime)

    articles = relationship("Article", back_populates="author")


class Article(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True)
    author_id = Column(ForeignKey("authors.id"))
    title = Column(String(200))
    views = Column(Integer, default=0)
    created_at = Column(DateTime)

    author = relationship("Author", back_populates="articles")


# * In-memory database shared by every request
engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
Base.metadata.create_all(engine)
with engine.begin() as conn:
    conn.execute(
        insert(Author.__table__),
        [
            {"id": 1, "name": "Ada Lovelace", "email": "ada@example.com"},
            {"id": 2, "name": "Alan Turing", "email": "alan@example.com"},
        ],
    )
    conn.execute(
        insert(Article.__table__),
        [
            {"author_id": 1, "title": "Notes on the Analytical Engine", "views": 1843},
            {"author_id": 2, "title": "Computing Machinery and Intelligence", "views": 1950},
        ],
    )

registry = EntityRegistry()
registry.register_model(
    Author,
    EntitySearchSpec(like_keys=["name", "email"], allowed_relations=["articles"], q_relations=["articles"]),
)
registry.register_model(Article, EntitySearchSpec(like_keys=["title"], allowed_relations=["author"]))

compiler = SearchCompiler(registry, SchemaProvider(SqlAlchemyIntrospector([engine])), "sqlite")
builder = QueryBuilder(Base.metadata)

app: FastAPI = FastAPI()
register_error_handlers(app)


def fetch(search: CompiledSearch) -> List[Dict[str, Any]]:
    with engine.connect() as conn:
        return [dict(row._mapping) for row in conn.execute(builder.build(search))]


@app.get("/authors")
def search_authors(search: CompiledSearch = Depends(SearchDependency(compiler, "Author"))):
    return {"where": search.predicate.render(), "rows": fetch(search)}


@app.get("/articles")
def search_articles(search: CompiledSearch = Depends(SearchDependency(compiler, "Article"))):
    return {"where": search.predicate.render(), "rows": fetch(search)}


def run():
    log.set_level("INFO")
    log.section("Schema")
    display_table_schema(compiler.schema.table("sqlite", "authors"))
    display_table_schema(compiler.schema.table("sqlite", "articles"))

    log.section("Search")
    search = compiler.compile("Author", {"q": "engine", "sortByDesc": "name"})
    display_search(search)
    for row in fetch(search):
        log.info(f"{row['id']}: {row['name']}")


if __name__ == "__main__":
    run()
