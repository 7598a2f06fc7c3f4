from __future__ import annotations

from blog import Post, build_catalog, comment_api, post_api, sample_post

from mapview.config import MapSettings
from mapview.container import build_container
from mapview.records import ObjectRecordType


def test_build_container_wires_shared_catalog() -> None:
    settings = MapSettings(environment="test", destroy_key="_remove")

    container = build_container(settings)

    assert container.settings is settings
    assert container.catalog.settings is settings
    assert container.catalog.ready is False


def test_container_services_round_trip() -> None:
    container = build_container(MapSettings(environment="test"))
    template = build_catalog()
    for type_name in ("Author", "Post", "Comment", "Reply"):
        record_type = template.record_type(type_name)
        assert isinstance(record_type, ObjectRecordType)
        container.catalog.register_type(record_type)
    container.catalog.map_attributes("Post", "api", post_api)
    container.catalog.map_attributes("Comment", "api", comment_api)
    container.catalog.mark_ready()

    post = sample_post()
    output = container.projector.project(post, "api", include="comments")
    copy = container.assigner.assign(Post(), "api", output)

    assert output["comments"] == [{"id": 10, "body": "first"}, {"id": 11, "body": "second"}]
    assert copy.title == "T"
    assert copy.created_at is None
    assert [c.body for c in copy.comments] == ["first", "second"]
    assert container.translator.translate(("Post", "api"), {"created_at": "x"}) == {}
