# test/conftest.py
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from granular import (
    Entity,
    EntityRegistry,
    EntitySearchSpec,
    GranularConfig,
    MappingIntrospector,
    Relation,
    SchemaProvider,
    SearchCompiler,
    Secondary,
)

DRIVER = "main"

STRUCTURE = {
    DRIVER: {
        "users": {
            "id": "integer",
            "name": "varchar",
            "email": "varchar",
            "age": "integer",
            "created_at": "datetime",
        },
        "posts": {
            "id": "integer",
            "user_id": "integer",
            "title": "varchar",
            "published": "boolean",
            "created_at": "datetime",
        },
        "tags": {
            "id": "integer",
            "label": "varchar",
        },
        "post_tags": {
            "post_id": "integer",
            "tag_id": "integer",
        },
    }
}

USER_RELATIONS = {
    "posts": Relation(name="posts", target="Post", local_key="id", remote_key="user_id"),
}

POST_RELATIONS = {
    "user": Relation(name="user", target="User", local_key="user_id", remote_key="id"),
    "tags": Relation(
        name="tags",
        target="Tag",
        local_key="id",
        remote_key="id",
        secondary=Secondary(table="post_tags", local_key="post_id", remote_key="tag_id"),
    ),
}


@pytest.fixture
def fixed_now():
    moment = datetime(2024, 5, 10, 12, 0, tzinfo=ZoneInfo("UTC"))
    return lambda: moment


@pytest.fixture
def introspector():
    return MappingIntrospector(STRUCTURE)


@pytest.fixture
def make_compiler(introspector):
    """Builds a compiler over users/posts/tags with per-test search specs."""

    def factory(user_spec=None, post_spec=None, tag_spec=None, config=None):
        config = config or GranularConfig()
        registry = EntityRegistry(
            [
                Entity(
                    name="User",
                    table="users",
                    spec=user_spec or EntitySearchSpec(like_keys=["name", "email"], allowed_relations=["posts"]),
                    relations=USER_RELATIONS,
                ),
                Entity(
                    name="Post",
                    table="posts",
                    spec=post_spec or EntitySearchSpec(like_keys=["title"], allowed_relations=["user"]),
                    relations=POST_RELATIONS,
                ),
                Entity(
                    name="Tag",
                    table="tags",
                    spec=tag_spec or EntitySearchSpec(like_keys=["label"]),
                ),
            ]
        )
        provider = SchemaProvider(introspector, config)
        return SearchCompiler(registry, provider, DRIVER)

    return factory


@pytest.fixture
def compiler(make_compiler):
    return make_compiler()
