from __future__ import annotations

import pytest
from blog import build_catalog, comment_api

from mapview.maps import ConfigurationError


def _catalog():
    catalog = build_catalog()
    catalog.map_attributes(
        "Post",
        "api",
        lambda m: (
            m.declare_field("title"),
            m.declare_field("created_at", access_mode="ro"),
            m.declare_field("secret", internal_name="heavy", access_mode="w"),
            m.declare_relation("comments", optional_group=True),
            m.declare_relation("author", access_mode="ro"),
        ),
    )
    catalog.map_attributes("Comment", "api", comment_api)
    catalog.map_attributes(
        "Author",
        "api",
        lambda m: (m.declare_field("name"), m.declare_relation("posts", access_mode="ro")),
    )
    return catalog


def test_schema_without_access_lists_everything() -> None:
    schema = _catalog().require_map("Post", "api").schema()

    assert schema["fields"] == {
        "title": {"type": "string", "access": "rw"},
        "created_at": {"type": "datetime", "access": "ro"},
        "secret": {"type": "text", "access": "w"},
    }
    assert schema["relations"]["comments"] == {
        "optional": True,
        "access": "rw",
        "fields": {
            "id": {"type": "integer", "access": "rw"},
            "body": {"type": "text", "access": "rw"},
        },
        "relations": {},
    }
    # Back references to a type already being described are not expanded.
    assert schema["relations"]["author"] == {
        "access": "ro",
        "fields": {"name": {"type": "string", "access": "rw"}},
        "relations": {"posts": {"access": "ro"}},
    }


def test_schema_for_read_and_write() -> None:
    post_map = _catalog().require_map("Post", "api")

    read = post_map.schema("read")
    write = post_map.schema("write")

    assert read["fields"] == {"title": "string", "created_at": "datetime"}
    assert set(read["relations"]) == {"comments", "author"}
    assert write["fields"] == {"title": "string", "secret": "text"}
    assert set(write["relations"]) == {"comments"}
    assert write["relations"]["comments"]["fields"] == {"id": "integer", "body": "text"}


def test_schema_rejects_unknown_access() -> None:
    post_map = _catalog().require_map("Post", "api")

    with pytest.raises(ConfigurationError, match="delete"):
        post_map.schema("delete")
