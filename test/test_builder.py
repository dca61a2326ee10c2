# test/test_builder.py
from datetime import datetime

import pytest
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, create_engine, insert, select
from sqlalchemy.orm import DeclarativeBase, relationship

from granular import (
    EntityRegistry,
    EntitySearchSpec,
    QueryBuilder,
    SchemaProvider,
    SearchCompiler,
    SqlAlchemyIntrospector,
    UnknownTable,
)


class Base(DeclarativeBase):
    pass


post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", ForeignKey("posts.id"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(50))
    email = Column(String(100))
    age = Column(Integer, nullable=True)
    created_at = Column(DateTime)

    posts = relationship("Post", back_populates="user")


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True)
    user_id = Column(ForeignKey("users.id"))
    title = Column(String(200))

    user = relationship("User", back_populates="posts")
    tags = relationship("Tag", secondary=post_tags)


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    label = Column(String(50))


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(
            insert(User.__table__),
            [
                {"id": 1, "name": "Alice", "email": "alice@example.com", "age": 30, "created_at": datetime(2024, 5, 1, 10)},
                {"id": 2, "name": "Bob", "email": "bob@example.com", "age": None, "created_at": datetime(2024, 5, 2, 9)},
                {"id": 3, "name": "Carol", "email": "carol@example.com", "age": 41, "created_at": datetime(2024, 5, 3, 12)},
            ],
        )
        conn.execute(
            insert(Post.__table__),
            [
                {"id": 1, "user_id": 1, "title": "Hello world"},
                {"id": 2, "user_id": 1, "title": "Second thoughts"},
                {"id": 3, "user_id": 2, "title": "Field notes"},
            ],
        )
        conn.execute(insert(Tag.__table__), [{"id": 1, "label": "python"}, {"id": 2, "label": "sql"}])
        conn.execute(insert(post_tags), [{"post_id": 1, "tag_id": 1}, {"post_id": 3, "tag_id": 2}])
    return engine


def make_search(engine, user_spec=None):
    registry = EntityRegistry()
    registry.register_model(User, user_spec or EntitySearchSpec(like_keys=["name", "email"], allowed_relations=["posts"]))
    registry.register_model(Post, EntitySearchSpec(like_keys=["title"], allowed_relations=["user", "tags"]))
    registry.register_model(Tag, EntitySearchSpec(like_keys=["label"]))
    compiler = SearchCompiler(registry, SchemaProvider(SqlAlchemyIntrospector([engine])), "sqlite")
    builder = QueryBuilder(Base.metadata)

    def search(raw, **options):
        query = builder.build(compiler.compile("User", raw, **options))
        with engine.connect() as conn:
            return [row.id for row in conn.execute(query)]

    return search


def test_register_model_reads_relations():
    registry = EntityRegistry()
    post = registry.register_model(Post, EntitySearchSpec(allowed_relations=["user", "tags", "comments"]))
    assert post.table == "posts"
    assert post.relations["user"].target == "User"
    assert (post.relations["user"].local_key, post.relations["user"].remote_key) == ("user_id", "id")
    tags = post.relations["tags"]
    assert (tags.local_key, tags.remote_key) == ("id", "id")
    assert (tags.secondary.table, tags.secondary.local_key, tags.secondary.remote_key) == ("post_tags", "post_id", "tag_id")
    assert "comments" not in post.relations

    user = registry.register_model(User, EntitySearchSpec(allowed_relations=["posts"]))
    assert (user.relations["posts"].local_key, user.relations["posts"].remote_key) == ("id", "user_id")


def test_broad_search(engine):
    search = make_search(engine)
    assert sorted(search("alice")) == [1]
    assert sorted(search({"q": "example"})) == [1, 2, 3]


def test_relation_filter(engine):
    search = make_search(engine)
    assert sorted(search({"post_title": "hello"})) == [1]
    assert sorted(search({"post_title": "notes"})) == [2]


def test_many_to_many_through_secondary(engine):
    search = make_search(engine)
    assert sorted(search({"post_tag_label": "sql"})) == [2]
    assert sorted(search({"post_tag_label": "python"})) == [1]


def test_q_reaches_related_rows(engine):
    search = make_search(engine)
    assert sorted(search({"q": "field"})) == []
    assert sorted(search({"q": "field", "q_relations": "posts"})) == [2]

    # without q_relations, related rows must match as well
    assert sorted(search({"q": "o"})) == [1, 2, 3]
    assert sorted(search({"q": "o"}, q_search_relationships=True)) == [1]


def test_null_and_list_values(engine):
    search = make_search(engine)
    assert sorted(search({"age": [30, None]})) == [1, 2]
    assert sorted(search({"age": None})) == [2]


def test_sorting_groups_nulls(engine):
    search = make_search(engine)
    assert search({"sortByDesc": "age"}) == [3, 1, 2]

    nulls_first = EntitySearchSpec(like_keys=["name", "email"], allowed_relations=["posts"], nulls_first=True)
    assert make_search(engine, nulls_first)({"sortByDesc": "age"}) == [2, 3, 1]


def test_time_range(engine):
    search = make_search(engine)
    assert search({"date": "2024-05-02"}) == [2]
    assert sorted(search({"date_from": "2024-05-02", "date_to": "2024-05-03"})) == [2, 3]


def test_build_extends_an_existing_statement(engine):
    registry = EntityRegistry()
    registry.register_model(User, EntitySearchSpec(like_keys=["name"]))
    compiler = SearchCompiler(registry, SchemaProvider(SqlAlchemyIntrospector([engine])), "sqlite")
    users = User.__table__
    builder = QueryBuilder(Base.metadata)
    statement = select(users.c.id).where(users.c.age.is_not(None))

    with engine.connect() as conn:
        found = conn.execute(builder.build(compiler.compile("User", {"name": "o"}), statement))
        assert [row.id for row in found] == [3]
        found = conn.execute(builder.build(compiler.compile("User", {"name": "b"}), statement))
        assert [row.id for row in found] == []


def test_unknown_table():
    with pytest.raises(UnknownTable):
        QueryBuilder(Base.metadata).table("ghosts")
