"""aiosqlite connection for the snapshot store."""

import aiosqlite

from athanor.db.schema import SCHEMA_SQL


class Database:
    """One shared aiosqlite connection; rows come back as ``aiosqlite.Row``."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._conn = connection

    @classmethod
    async def connect(cls, path: str = "athanor.db") -> "Database":
        """Open ``path`` (``":memory:"`` for tests) and create missing tables."""
        conn = await aiosqlite.connect(path)
        conn.row_factory = aiosqlite.Row
        if path != ":memory:":
            await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA busy_timeout=5000")
        await conn.executescript(SCHEMA_SQL)
        await conn.commit()
        return cls(conn)

    async def insert(self, sql: str, params: tuple = ()) -> int:
        """Run an INSERT, commit, and return the new row's id."""
        cursor = await self._conn.execute(sql, params)
        await self._conn.commit()
        if cursor.lastrowid is None:
            raise RuntimeError("INSERT did not produce a row id")
        return cursor.lastrowid

    async def fetchone(self, sql: str, params: tuple = ()) -> aiosqlite.Row | None:
        async with self._conn.execute(sql, params) as cursor:
            return await cursor.fetchone()

    async def fetchall(self, sql: str, params: tuple = ()) -> list[aiosqlite.Row]:
        async with self._conn.execute(sql, params) as cursor:
            return list(await cursor.fetchall())

    async def close(self) -> None:
        await self._conn.close()
