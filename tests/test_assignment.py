from __future__ import annotations

import pytest
from blog import Author, Comment, Post, build_catalog, comment_api

from mapview.maps import InputShapeError
from mapview.records.assignment import NestedAttributeAssigner, is_truthy
from mapview.serialization import MapProjector, WriteTranslator


def _services(catalog):
    translator = WriteTranslator(catalog)
    return MapProjector(catalog), NestedAttributeAssigner(catalog, translator)


def _declare_blog(catalog) -> None:
    catalog.map_attributes(
        "Post",
        "api",
        lambda m: (
            m.declare_fields("id", "title", "body"),
            m.declare_field("created_at", access_mode="ro"),
            m.declare_relation("author"),
            m.declare_relation("comments"),
        ),
    )
    catalog.map_attributes(
        "Author",
        "api",
        lambda m: (m.declare_field("id"), m.declare_field("full_name", internal_name="name")),
    )
    catalog.map_attributes("Comment", "api", comment_api)


def test_projected_read_write_fields_round_trip() -> None:
    catalog = build_catalog()
    _declare_blog(catalog)
    projector, assigner = _services(catalog)
    source = Post(id=1, title="T", body="B", created_at="t0", author=Author(id=2, name="Ann"))
    source.comments = [Comment(id=10, body="first"), Comment(id=11, body="second")]

    blank = assigner.assign(Post(), "api", projector.project(source, "api"))

    assert (blank.id, blank.title, blank.body) == (1, "T", "B")
    assert blank.created_at is None
    assert blank.author is not None and blank.author.name == "Ann"
    assert [(c.id, c.body) for c in blank.comments] == [(10, "first"), (11, "second")]


def test_collection_members_are_matched_by_primary_key() -> None:
    catalog = build_catalog()
    _declare_blog(catalog)
    _, assigner = _services(catalog)
    first, second = Comment(id=10, body="first"), Comment(id=11, body="second")
    post = Post(id=1, comments=[first, second])

    assigner.assign(
        post,
        "api",
        {
            "comments": [
                {"id": "10", "body": "edited"},
                {"id": 11, "_destroy": "true"},
                {"body": "new"},
                {"body": "ignored", "_destroy": 1},
            ]
        },
    )

    assert post.comments[0] is first
    assert first.body == "edited"
    assert second not in post.comments
    assert [c.body for c in post.comments] == ["edited", "new"]


def test_destroy_is_ignored_when_relation_disallows_it() -> None:
    catalog = build_catalog()
    _declare_blog(catalog)
    _, assigner = _services(catalog)
    author = Author(id=2, name="Ann")
    post = Post(id=1, author=author)

    assigner.assign(post, "api", {"author": {"id": 2, "full_name": "Bea", "_destroy": True}})

    assert post.author is author
    assert author.name == "Bea"


def test_to_one_relation_is_replaced_on_key_mismatch() -> None:
    catalog = build_catalog()
    _declare_blog(catalog)
    _, assigner = _services(catalog)
    author = Author(id=2, name="Ann")
    post = Post(id=1, author=author)

    assigner.assign(post, "api", {"author": {"id": 3, "full_name": "Cy"}})

    assert post.author is not author
    assert (post.author.id, post.author.name) == (3, "Cy")
    assert author.name == "Ann"


def test_custom_writer_and_read_only_fields() -> None:
    catalog = build_catalog()
    catalog.map_attributes(
        "Post",
        "api",
        lambda m: (
            m.declare_field("headline", access_mode="w", write_fn=lambda post, value: setattr(post, "title", value.title())),
            m.declare_field("created_at", access_mode="ro"),
        ),
    )
    _, assigner = _services(catalog)
    post = Post(created_at="t0")

    assigner.assign(post, "api", {"headline": "hello world", "created_at": "t1"})

    assert post.title == "Hello World"
    assert post.created_at == "t0"


def test_accessor_field_round_trip() -> None:
    catalog = build_catalog()
    catalog.map_attributes(
        "Post",
        "api",
        lambda m: (
            m.declare_field("id"),
            m.declare_field("shout", read_fn="shout", access_mode="ro"),
            m.declare_field(
                "caption",
                read_fn=lambda post: post.title,
                write_fn=lambda post, value: setattr(post, "title", value),
            ),
        ),
    )
    projector, assigner = _services(catalog)

    projected = projector.project(Post(id=1, title="hi"), "api")
    blank = assigner.assign(Post(), "api", projected)

    assert projected == {"id": 1, "shout": "HI", "caption": "hi"}
    assert (blank.id, blank.title) == (1, "hi")


def test_assign_rejects_non_mapping_input() -> None:
    catalog = build_catalog()
    _declare_blog(catalog)
    _, assigner = _services(catalog)

    with pytest.raises(InputShapeError):
        assigner.assign(Post(), "api", [{"title": "A"}])


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("true", True), ("0", False), ("false", False), ("", False), (True, True), (None, False)],
)
def test_is_truthy(value, expected) -> None:
    assert is_truthy(value) is expected
