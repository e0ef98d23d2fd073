# db.py
import logging

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from config import get_settings

logger = logging.getLogger(__name__)

# 宣告全域連線池變數，預設為 None
_pool: AsyncConnectionPool | None = None


async def open_pool() -> AsyncConnectionPool:
    """
    建立並開啟連線池。
    main.py 的 lifespan 會在啟動時呼叫；getDB 在連線池還沒建立時也會呼叫 (Lazy Loading)。
    """
    global _pool
    if _pool is not None:
        return _pool

    settings = get_settings()
    logger.info("Initializing connection pool (%s@%s:%s/%s)",
                settings.db_user, settings.db_host, settings.db_port, settings.db_name)
    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.db_pool_min,
        max_size=settings.db_pool_max,
        kwargs={"row_factory": dict_row},  # 查詢結果變成 dict (例如 record['id']) 而不是 tuple
        open=False,  # 先設定好參數，由下方 open() 觸發
    )
    try:
        await pool.open()
    except Exception:
        logger.exception("Could not open connection pool")
        raise
    _pool = pool
    logger.info("Connection pool opened")
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Connection pool closed")


async def getDB():
    """
    FastAPI 的 Dependency 函式。

    每個請求借一條連線，請求結束後自動歸還：
    區塊正常結束時 commit，發生例外時 rollback。
    """
    pool = _pool if _pool is not None else await open_pool()

    async with pool.connection() as conn:
        yield conn
