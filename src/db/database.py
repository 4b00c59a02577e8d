# manages connection to the local sqlite file, provides helper methods internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from typing import Optional, Set

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = "data/client.sqlite"
DB_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    k TEXT PRIMARY KEY,
    v TEXT NOT NULL
);
"""

_initialized: Set[str] = set()
_init_lock = asyncio.Lock()


async def _init_db(conn: aiosqlite.Connection) -> None:
    await conn.executescript(DB_SCHEMA)
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect(db_path: Optional[str] = None) -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Ensures the key/value table exists on first use of each file.
    Missing parent directories are created.
    """
    path = db_path or DB_PATH
    parent = os.path.dirname(path)
    if parent and not os.path.isdir(parent):
        os.makedirs(parent, exist_ok=True)

    conn = await aiosqlite.connect(path)
    try:
        if path not in _initialized:
            async with _init_lock:
                if path not in _initialized:
                    if not await _table_exists(conn, "kv"):
                        _logger.info(f"Initializing local store at {path}...")
                        await _init_db(conn)
                    _initialized.add(path)
        yield conn
    finally:
        await conn.close()
