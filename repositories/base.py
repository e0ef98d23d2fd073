# repositories/base.py
import logging
import uuid
from decimal import Decimal
from typing import Any

import psycopg
from psycopg import AsyncConnection
from psycopg.errors import ForeignKeyViolation

from errors import NotFound, StoreError

logger = logging.getLogger(__name__)


def normalize_row(row: dict | None) -> dict | None:
    """
    dict_row 取回的資料裡，UUID 欄位是 uuid.UUID、NUMERIC 欄位是 Decimal，
    統一轉成 str / float 再交給 pydantic model。
    """
    if row is None:
        return None
    out = {}
    for key, value in row.items():
        if isinstance(value, uuid.UUID):
            value = str(value)
        elif isinstance(value, Decimal):
            value = float(value)
        out[key] = value
    return out


def split_summary(row: dict, prefix: str) -> dict:
    """
    把 JOIN 出來的 users 欄位 (例如 client_uid、client_name) 拿出來組成摘要 dict，
    並從原本的 row 移除。id 用 uid 當別名，避免跟 client_id 欄位撞名。
    """
    return {
        "id": row.pop(f"{prefix}_uid", None),
        "name": row.pop(f"{prefix}_name", None),
        "username": row.pop(f"{prefix}_username", None),
        "email": row.pop(f"{prefix}_email", None),
    }


class BaseRepository:
    """所有 repository 共用的查詢工具，每個請求一個 AsyncConnection"""

    def __init__(self, conn: AsyncConnection):
        self.conn = conn

    async def fetchone(self, query, params: tuple = (), action: str = "query") -> dict | None:
        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, params)
                return normalize_row(await cur.fetchone())
        except ForeignKeyViolation as e:
            # 參照的使用者 / 專案在檢查之後被刪掉，或根本不存在
            logger.warning("Foreign key violation during %s: %s", action, e)
            raise NotFound("Referenced record not found") from e
        except psycopg.Error as e:
            logger.exception("Failed to %s", action)
            raise StoreError(f"Failed to {action}: {e}") from e

    async def fetchall(self, query, params: tuple = (), action: str = "query") -> list[dict]:
        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, params)
                return [normalize_row(r) for r in await cur.fetchall()]
        except psycopg.Error as e:
            logger.exception("Failed to %s", action)
            raise StoreError(f"Failed to {action}: {e}") from e

    async def scalar(self, query, params: tuple = (), action: str = "query") -> Any:
        row = await self.fetchone(query, params, action)
        if not row:
            return None
        return next(iter(row.values()))
