# localize_hub/stores/sqlite.py
"""
提供基于 aiosqlite 的设置存储与实体存储。

实体以 JSON 文档的形式保存在 `lh_entities` 表中，`locale` 单独成列以便过滤；
localizations 的链接语义与内存实现保持一致。
"""

import asyncio
import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Optional

import aiosqlite
import structlog

from localize_hub.exceptions import NotFoundError
from localize_hub.interfaces import EntityId
from localize_hub.stores.memory import matches_filters, normalize_link_ids, wants_localizations
from localize_hub.types import LOCALIZATIONS_FIELD, ContentEntity

logger = structlog.get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS lh_settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS lh_entities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    model TEXT NOT NULL,
    locale TEXT,
    document TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_lh_entities_model_locale ON lh_entities (model, locale);
"""


class SQLiteDatabase:
    """持有单个 aiosqlite 连接，供设置存储和实体存储共享。"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None
        # 共享连接上同一时刻只能有一个事务
        self._tx_lock = asyncio.Lock()

    async def connect(self) -> None:
        try:
            self._conn = await aiosqlite.connect(self.db_path, isolation_level=None)
            self._conn.row_factory = aiosqlite.Row
            if self.db_path != ":memory:":
                await self._conn.execute("PRAGMA journal_mode = WAL;")
            await self._conn.executescript(SCHEMA_SQL)
            logger.info("数据库连接已建立", db_path=self.db_path)
        except aiosqlite.Error:
            logger.error("连接数据库失败", db_path=self.db_path, exc_info=True)
            raise

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("数据库连接已关闭", db_path=self.db_path)

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("数据库未连接或已关闭。请先调用 connect()。")
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Cursor, None]:
        async with self._tx_lock:
            cursor = await self.connection.cursor()
            try:
                await cursor.execute("BEGIN")
                yield cursor
                await cursor.execute("COMMIT")
            except Exception:
                logger.error("事务执行失败，正在回滚", exc_info=True)
                await cursor.execute("ROLLBACK")
                raise
            finally:
                await cursor.close()


class SQLiteSettingsStore:
    def __init__(self, db: SQLiteDatabase):
        self.db = db

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        async with self.db.connection.execute(
            "SELECT value FROM lh_settings WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
        return json.loads(row["value"]) if row else None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        async with self.db.transaction() as cursor:
            await cursor.execute(
                """
                INSERT INTO lh_settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, json.dumps(value, ensure_ascii=False)),
            )


class SQLiteEntityStore:
    """把内容实体保存为 JSON 文档的实体存储。"""

    def __init__(self, db: SQLiteDatabase):
        self.db = db

    @staticmethod
    def _decode(row: aiosqlite.Row) -> ContentEntity:
        entity = json.loads(row["document"])
        entity["id"] = row["id"]
        entity[LOCALIZATIONS_FIELD] = normalize_link_ids(entity.get(LOCALIZATIONS_FIELD))
        return entity

    async def _fetch(self, model: str, entity_id: int) -> Optional[ContentEntity]:
        async with self.db.connection.execute(
            "SELECT id, document FROM lh_entities WHERE model = ? AND id = ?",
            (model, entity_id),
        ) as cursor:
            row = await cursor.fetchone()
        return self._decode(row) if row else None

    async def _locales_of(self, model: str, ids: list[int]) -> dict[int, Optional[str]]:
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        async with self.db.connection.execute(
            f"SELECT id, locale FROM lh_entities WHERE model = ? AND id IN ({placeholders})",
            (model, *ids),
        ) as cursor:
            rows = await cursor.fetchall()
        return {row["id"]: row["locale"] for row in rows}

    async def _present(self, model: str, entity: ContentEntity, populate: Any) -> ContentEntity:
        link_ids = entity.pop(LOCALIZATIONS_FIELD, [])
        if wants_localizations(populate):
            locales = await self._locales_of(model, link_ids)
            entity[LOCALIZATIONS_FIELD] = [
                {"id": i, "locale": locales[i]} for i in link_ids if i in locales
            ]
        return entity

    @staticmethod
    async def _write(cursor: aiosqlite.Cursor, entity: ContentEntity) -> None:
        document = {k: v for k, v in entity.items() if k != "id"}
        await cursor.execute(
            "UPDATE lh_entities SET locale = ?, document = ? WHERE id = ?",
            (entity.get("locale"), json.dumps(document, ensure_ascii=False), entity["id"]),
        )

    async def find_one(
        self,
        model: str,
        entity_id: EntityId,
        *,
        populate: Any = None,
        locale: Optional[str] = None,
    ) -> Optional[ContentEntity]:
        try:
            key = int(entity_id)
        except (TypeError, ValueError):
            return None
        entity = await self._fetch(model, key)
        if entity is None:
            return None
        return await self._present(model, entity, populate)

    async def find_many(
        self,
        model: str,
        *,
        filters: Optional[dict[str, Any]] = None,
        populate: Any = None,
    ) -> list[ContentEntity]:
        filters = dict(filters or {})
        sql = "SELECT id, document FROM lh_entities WHERE model = ?"
        params: list[Any] = [model]
        if "locale" in filters:
            sql += " AND locale = ?"
            params.append(filters["locale"])
        sql += " ORDER BY id"
        async with self.db.connection.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
        entities = [self._decode(row) for row in rows]
        return [
            await self._present(model, entity, populate)
            for entity in entities
            if matches_filters(entity, filters)
        ]

    async def create(self, model: str, *, data: dict[str, Any]) -> ContentEntity:
        document = {k: v for k, v in data.items() if k != "id"}
        seed = normalize_link_ids(document.pop(LOCALIZATIONS_FIELD, None))

        async with self.db.transaction() as cursor:
            await cursor.execute(
                "INSERT INTO lh_entities (model, locale, document) VALUES (?, ?, ?)",
                (model, document.get("locale"), "{}"),
            )
            new_id = cursor.lastrowid
            if new_id is None:
                raise RuntimeError("无法为新实体分配 ID。")

            group: list[int] = []
            for linked_id in seed:
                other = await self._fetch(model, linked_id)
                if other is None:
                    continue
                for member in [linked_id, *other[LOCALIZATIONS_FIELD]]:
                    if member not in group:
                        group.append(member)
            # 整个语言版本组都要链接到新实体
            for member in group:
                other = await self._fetch(model, member)
                if other is not None and new_id not in other[LOCALIZATIONS_FIELD]:
                    other[LOCALIZATIONS_FIELD].append(new_id)
                    await self._write(cursor, other)

            entity = {**document, "id": new_id, LOCALIZATIONS_FIELD: group}
            await self._write(cursor, entity)

        logger.debug("实体已创建", model=model, entity_id=new_id, linked=group)
        return await self._present(model, entity, LOCALIZATIONS_FIELD)

    async def update(
        self, model: str, entity_id: EntityId, *, data: dict[str, Any]
    ) -> ContentEntity:
        entity = await self._fetch(model, int(entity_id))
        if entity is None:
            raise NotFoundError(f"实体不存在: model={model}, id={entity_id}")
        entity.update(
            {k: v for k, v in data.items() if k not in ("id", LOCALIZATIONS_FIELD)}
        )
        async with self.db.transaction() as cursor:
            await self._write(cursor, entity)
        return await self._present(model, entity, LOCALIZATIONS_FIELD)
