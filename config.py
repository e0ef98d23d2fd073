# config.py
import logging
import os
from dataclasses import dataclass
from functools import lru_cache


def _bool(val: str) -> bool:
    return val.strip().lower() in ("1", "true", "yes", "on")


def _int(val: str | None, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


# --- 應用程式設定 ---
# 所有設定都從環境變數讀取，沒設定時使用本地開發用的預設值
@dataclass
class Settings:
    environment: str = "development"

    # 資料庫連線參數
    db_name: str = "escrow_platform"
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_pool_min: int = 1
    db_pool_max: int = 10
    init_db_on_startup: bool = True

    # Session (登入狀態) 設定
    secret_key: str = "a_very_secret_key_please_change_me"
    session_max_age: int = 86400

    # 沒有 Session 時，是否接受 request body 裡的 user_id 當作操作者
    allow_body_principal: bool = True

    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def database_url(self) -> str:
        # 組合連線字串 (Connection String)
        return (
            f"dbname={self.db_name} user={self.db_user} password={self.db_password} "
            f"host={self.db_host} port={self.db_port}"
        )

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            db_name=os.getenv("DB_NAME", "escrow_platform"),
            db_user=os.getenv("DB_USER", "postgres"),
            db_password=os.getenv("DB_PASSWORD", "postgres"),
            db_host=os.getenv("DB_HOST", "localhost"),
            db_port=_int(os.getenv("DB_PORT"), 5432),
            db_pool_min=_int(os.getenv("DB_POOL_MIN"), 1),
            db_pool_max=_int(os.getenv("DB_POOL_MAX"), 10),
            init_db_on_startup=_bool(os.getenv("INIT_DB_ON_STARTUP", "true")),
            secret_key=os.getenv("SECRET_KEY", "a_very_secret_key_please_change_me"),
            session_max_age=_int(os.getenv("SESSION_MAX_AGE"), 86400),
            allow_body_principal=_bool(os.getenv("ALLOW_BODY_PRINCIPAL", "true")),
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if env == "development" else "INFO"),
            log_format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        )


@lru_cache
def get_settings() -> Settings:
    """每個 process 只讀一次環境變數"""
    return Settings.from_env()


def setup_logging(settings: Settings) -> None:
    """設定 root logger，在 main.py 啟動時呼叫一次"""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format,
    )
    # psycopg 的連線池在 DEBUG 等級非常吵
    logging.getLogger("psycopg.pool").setLevel(logging.WARNING)
