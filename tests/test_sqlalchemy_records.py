from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from sqlalchemy import ForeignKey, Integer, String, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from mapview.config import MapSettings
from mapview.container import build_container
from mapview.maps import MapCatalog
from mapview.records.models import RelationInfo
from mapview.records.sqlalchemy import SQLAlchemyRecordType, register_models
from mapview.serialization import MapProjector


class Base(DeclarativeBase):  # type: ignore[misc]
    pass


class Writer(Base):
    __tablename__ = "writers"
    __nested_attributes__ = {"articles": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    articles: Mapped[list[Article]] = relationship(
        back_populates="writer",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Article.id",
    )


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    writer_id: Mapped[int | None] = mapped_column(ForeignKey("writers.id"))
    writer: Mapped[Writer | None] = relationship(back_populates="articles", lazy="selectin")

    __mapper_args__ = {"polymorphic_on": "kind", "polymorphic_identity": "article"}


class Feature(Article):
    headline: Mapped[str | None] = mapped_column(String(200), nullable=True)

    __mapper_args__ = {"polymorphic_identity": "feature"}


def _declare_maps(catalog: MapCatalog) -> MapCatalog:
    catalog.map_attributes(
        Writer,
        "api",
        lambda m: (
            m.declare_fields("id", "name"),
            m.declare_relation("articles", polymorphic=True),
        ),
    )
    catalog.map_attributes(
        Article,
        "api",
        lambda m: (
            m.declare_fields("id", "title"),
            m.declare_field("type", access_mode="ro"),
        ),
    )
    catalog.map_attributes(Feature, "api", lambda m: m.declare_field("headline"))
    return catalog


def test_record_type_introspection() -> None:
    writer_type = SQLAlchemyRecordType(Writer)
    article_type = SQLAlchemyRecordType(Article)
    feature_type = SQLAlchemyRecordType(Feature)

    assert writer_type.type_name == "Writer"
    assert writer_type.primary_key_name == "id"
    assert writer_type.relation_info("articles") == RelationInfo("Article", True)
    assert article_type.relation_info("writer") == RelationInfo("Writer", False)
    assert writer_type.column_type("name") == "string"
    assert writer_type.column_type("id") == "integer"
    assert writer_type.column_type("articles") is None
    assert writer_type.has_field("name") and not writer_type.has_field("articles")
    assert writer_type.accepts_nested("articles") and writer_type.allows_destroy("articles")
    assert not article_type.accepts_nested("writer")
    assert article_type.base_type_name is None
    assert feature_type.base_type_name == "Article"
    assert feature_type.relation_info("writer").target_type_name == "Writer"
    assert article_type.discriminator(Article(title="A")) == "article"
    assert article_type.discriminator(Feature(title="F")) == "feature"


def test_unknown_relationship_raises_key_error() -> None:
    with pytest.raises(KeyError):
        SQLAlchemyRecordType(Writer).relation_info("editors")


def test_projection_of_transient_models() -> None:
    catalog = MapCatalog()
    register_models(catalog, Feature, Writer, Article)
    _declare_maps(catalog)

    writer = Writer(id=1, name="Ann")
    writer.articles.append(Article(id=1, title="One"))
    writer.articles.append(Feature(id=2, title="Two", headline="Big"))

    output = MapProjector(catalog).project(writer, "api")

    assert output == {
        "id": 1,
        "name": "Ann",
        "articles": [
            {"id": 1, "title": "One", "type": "article"},
            {"id": 2, "title": "Two", "type": "feature", "headline": "Big"},
        ],
    }


def test_schema_uses_column_types() -> None:
    catalog = MapCatalog()
    register_models(catalog, Writer, Article, Feature)
    _declare_maps(catalog)

    schema = catalog.require_map(Feature, "api").schema("read")

    assert schema == {
        "fields": {"id": "integer", "title": "string", "type": None, "headline": "string"},
        "relations": {},
    }


def test_async_session_round_trip(tmp_path: Path) -> None:
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'mapview.db'}"
    container = build_container(MapSettings(environment="test"))
    register_models(container.catalog, Writer, Article, Feature)
    _declare_maps(container.catalog)
    container.catalog.mark_ready()
    projector, assigner = container.projector, container.assigner

    async def _run() -> tuple[dict, dict]:
        engine = create_async_engine(db_url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)

        async with session_factory() as session:
            writer = assigner.assign(
                Writer(),
                "api",
                {"name": "Ann", "articles": {"article": [{"title": "One"}, {"title": "Two"}]}},
            )
            session.add(writer)
            await session.commit()

        async with session_factory() as session:
            writer = (await session.execute(select(Writer))).scalars().one()
            created = projector.project(writer, "api")
            first_id = writer.articles[0].id
            assigner.assign(
                writer,
                "api",
                {"articles": [{"id": first_id, "_destroy": "1"}, {"title": "Three"}]},
            )
            await session.commit()

        async with session_factory() as session:
            writer = (await session.execute(select(Writer))).scalars().one()
            updated = projector.project(writer, "api", only=["articles"])

        await engine.dispose()
        return created, updated

    created, updated = asyncio.run(_run())

    assert created["name"] == "Ann"
    assert [article["title"] for article in created["articles"]] == ["One", "Two"]
    assert all(article["type"] == "article" for article in created["articles"])
    assert [article["title"] for article in updated["articles"]] == ["Two", "Three"]
