"""Plain object record types shared by the mapping tests."""

from __future__ import annotations

from dataclasses import dataclass, field

from mapview.config import MapSettings
from mapview.maps import AttributeMap, MapCatalog
from mapview.records import ObjectRecordType, ObjectRelation


@dataclass(eq=False)
class Author:
    id: int | None = None
    name: str | None = None
    email: str | None = None
    posts: list[Post] = field(default_factory=list)


@dataclass(eq=False)
class Post:
    id: int | None = None
    title: str | None = None
    body: str | None = None
    created_at: str | None = None
    heavy: str | None = None
    author: Author | None = None
    comments: list[Comment] = field(default_factory=list)

    def shout(self) -> str:
        return (self.title or "").upper()


@dataclass(eq=False)
class Comment:
    id: int | None = None
    body: str | None = None
    post: Post | None = None


@dataclass(eq=False)
class Reply(Comment):
    quoted: str | None = None


class Viewer:
    """Context object supplying method-name accessors."""

    def __init__(self, name: str) -> None:
        self.name = name

    def post_label(self, post: Post) -> str:
        return f"{post.title} for {self.name}"


def build_catalog(settings: MapSettings | None = None) -> MapCatalog:
    catalog = MapCatalog(settings or MapSettings())
    catalog.register_type(
        ObjectRecordType(
            Author,
            fields={"id": "integer", "name": "string", "email": "string"},
            relations={"posts": ObjectRelation(Post, collection=True)},
        )
    )
    catalog.register_type(
        ObjectRecordType(
            Post,
            fields={
                "id": "integer",
                "title": "string",
                "body": "text",
                "created_at": "datetime",
                "heavy": "text",
            },
            relations={
                "author": ObjectRelation(Author),
                "comments": ObjectRelation(Comment, collection=True),
            },
            nested_attributes={"author": False, "comments": True},
        )
    )
    comment_relations = {"post": ObjectRelation(Post)}
    catalog.register_type(
        ObjectRecordType(
            Comment,
            fields={"id": "integer", "body": "text"},
            relations=comment_relations,
            identity="Comment",
        )
    )
    catalog.register_type(
        ObjectRecordType(
            Reply,
            fields={"id": "integer", "body": "text", "quoted": "text"},
            relations=comment_relations,
            base=Comment,
            identity="Reply",
        )
    )
    return catalog


def post_api(m: AttributeMap) -> None:
    m.declare_field("title")
    m.declare_field("created_at", access_mode="ro")
    m.declare_relation("comments", optional_group=True)


def comment_api(m: AttributeMap) -> None:
    m.declare_fields("id", "body")


def blog_catalog(settings: MapSettings | None = None) -> MapCatalog:
    """Catalog with the ``api`` maps of posts and comments declared."""

    catalog = build_catalog(settings)
    catalog.map_attributes("Post", "api", post_api)
    catalog.map_attributes("Comment", "api", comment_api)
    return catalog


def sample_post() -> Post:
    post = Post(id=1, title="T", body="one two three", created_at="t0")
    post.comments = [Comment(id=10, body="first", post=post), Comment(id=11, body="second", post=post)]
    return post
