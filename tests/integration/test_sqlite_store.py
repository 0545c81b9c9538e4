# tests/integration/test_sqlite_store.py
"""针对真实 SQLite 文件测试 aiosqlite 设置存储与实体存储。"""

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

from localize_hub.exceptions import NotFoundError
from localize_hub.stores.sqlite import SQLiteDatabase, SQLiteEntityStore, SQLiteSettingsStore

MODEL = "api::article.article"


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[SQLiteDatabase, None]:
    database = SQLiteDatabase(str(tmp_path / "store.db"))
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def store(db: SQLiteDatabase) -> SQLiteEntityStore:
    return SQLiteEntityStore(db)


def test_connection_requires_connect() -> None:
    with pytest.raises(RuntimeError):
        _ = SQLiteDatabase(":memory:").connection


@pytest.mark.asyncio
async def test_settings_upsert(db: SQLiteDatabase) -> None:
    settings = SQLiteSettingsStore(db)
    assert await settings.get("plugin") is None

    await settings.set("plugin", {"api_key": "a", "glossary": [{"term": "Größe"}]})
    await settings.set("plugin", {"api_key": "b"})

    assert await settings.get("plugin") == {"api_key": "b"}


@pytest.mark.asyncio
async def test_settings_survive_reconnect(tmp_path: Path) -> None:
    path = str(tmp_path / "persist.db")
    first = SQLiteDatabase(path)
    await first.connect()
    await SQLiteSettingsStore(first).set("plugin", {"auto_translate": True})
    await first.close()

    second = SQLiteDatabase(path)
    await second.connect()
    try:
        assert await SQLiteSettingsStore(second).get("plugin") == {"auto_translate": True}
    finally:
        await second.close()


@pytest.mark.asyncio
async def test_create_assigns_ids_and_links_group(store: SQLiteEntityStore) -> None:
    source = await store.create(MODEL, data={"locale": "en", "title": "Hello", "id": 77})
    de = await store.create(
        MODEL, data={"locale": "de", "title": "Hallo", "localizations": [source["id"]]}
    )
    fr = await store.create(
        MODEL, data={"locale": "fr", "title": "Salut", "localizations": [{"id": source["id"]}]}
    )

    assert source["id"] != 77
    assert fr["localizations"] == [
        {"id": source["id"], "locale": "en"},
        {"id": de["id"], "locale": "de"},
    ]
    reloaded = await store.find_one(MODEL, source["id"], populate="deep")
    assert reloaded is not None
    assert [link["locale"] for link in reloaded["localizations"]] == ["de", "fr"]


@pytest.mark.asyncio
async def test_find_one_hides_localizations_unless_populated(store: SQLiteEntityStore) -> None:
    created = await store.create(MODEL, data={"locale": "en", "title": "Hello"})

    entity = await store.find_one(MODEL, str(created["id"]))

    assert entity == {"id": created["id"], "locale": "en", "title": "Hello"}
    assert await store.find_one(MODEL, "abc") is None
    assert await store.find_one("api::other.other", created["id"]) is None


@pytest.mark.asyncio
async def test_find_many_filters(store: SQLiteEntityStore) -> None:
    await store.create(MODEL, data={"locale": "en", "title": "a"})
    await store.create(MODEL, data={"locale": "de", "title": "b"})
    await store.create(MODEL, data={"locale": "de", "title": "c"})

    found = await store.find_many(MODEL, filters={"locale": "de", "title": "c"})

    assert [e["title"] for e in found] == ["c"]


@pytest.mark.asyncio
async def test_update_merges_fields(store: SQLiteEntityStore) -> None:
    source = await store.create(MODEL, data={"locale": "en", "title": "Hello", "body": "x"})
    copy = await store.create(
        MODEL, data={"locale": "de", "title": "Hallo", "localizations": [source["id"]]}
    )

    updated = await store.update(
        MODEL, copy["id"], data={"title": "Servus", "localizations": []}
    )

    assert updated["title"] == "Servus"
    assert updated["localizations"] == [{"id": source["id"], "locale": "en"}]


@pytest.mark.asyncio
async def test_update_missing_entity_raises(store: SQLiteEntityStore) -> None:
    with pytest.raises(NotFoundError):
        await store.update(MODEL, 123, data={"title": "x"})


@pytest.mark.asyncio
async def test_concurrent_creates_do_not_collide(store: SQLiteEntityStore) -> None:
    source = await store.create(MODEL, data={"locale": "en", "title": "Hello"})

    await asyncio.gather(
        *(
            store.create(MODEL, data={"locale": code, "localizations": [source["id"]]})
            for code in ("de", "fr", "es")
        )
    )

    reloaded = await store.find_one(MODEL, source["id"], populate=["localizations"])
    assert reloaded is not None
    assert sorted(link["locale"] for link in reloaded["localizations"]) == ["de", "es", "fr"]
