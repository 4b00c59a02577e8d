# src/db/crud.py
from __future__ import annotations

from typing import Optional

from db.database import connect

# ---------------------------
# Key/value rows
# ---------------------------


async def kv_get(db_path: str, key: str) -> Optional[str]:
    """Return the stored value for key, or None if absent."""
    async with connect(db_path) as conn:
        cur = await conn.execute("SELECT v FROM kv WHERE k = ?;", (key,))
        row = await cur.fetchone()
        await cur.close()
    return row[0] if row else None


async def kv_set(db_path: str, key: str, value: str) -> None:
    """Insert or replace the value stored under key."""
    async with connect(db_path) as conn:
        await conn.execute(
            "INSERT INTO kv(k, v) VALUES (?, ?) ON CONFLICT(k) DO UPDATE SET v = excluded.v;",
            (key, value),
        )
        await conn.commit()


async def kv_remove(db_path: str, key: str) -> None:
    """Delete key; no-op if it does not exist."""
    async with connect(db_path) as conn:
        await conn.execute("DELETE FROM kv WHERE k = ?;", (key,))
        await conn.commit()
