# init_db.py
import logging

import psycopg

from config import get_settings

logger = logging.getLogger(__name__)

# 定義初始化 SQL 指令
# 使用 IF NOT EXISTS 避免重複建立錯誤
INIT_SQL = """
-- 1. 建立列舉類型 (Enum Types) - 統一管理狀態
DO $$ BEGIN
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'project_status') THEN
        CREATE TYPE project_status AS ENUM ('pending', 'in_progress', 'completed', 'cancelled');
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'contract_type') THEN
        CREATE TYPE contract_type AS ENUM ('project', 'service');
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'escrow_status') THEN
        CREATE TYPE escrow_status AS ENUM ('pending', 'funded', 'released', 'disputed');
    END IF;
END $$;

-- 2. 使用者表 (users) - 由帳號系統維護，這個服務只讀
CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name VARCHAR(255),
    username VARCHAR(100) NOT NULL UNIQUE,
    email VARCHAR(255) NOT NULL UNIQUE,
    is_freelancer BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- 3. 專案表 (projects)
CREATE TABLE IF NOT EXISTS projects (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    client_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title VARCHAR(255) NOT NULL,
    description TEXT NOT NULL,
    category VARCHAR(100) NOT NULL,
    budget NUMERIC(12, 2) NOT NULL CHECK (budget >= 0 AND budget <> 'NaN'),
    status project_status NOT NULL DEFAULT 'pending',
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

-- 4. 合約表 (contracts) - 綁定接案人、委託人與專案 / 服務需求
CREATE TABLE IF NOT EXISTS contracts (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    contract_type contract_type NOT NULL,
    project_id UUID REFERENCES projects(id) ON DELETE RESTRICT,
    service_request_id UUID,
    freelancer_id UUID NOT NULL REFERENCES users(id) ON DELETE RESTRICT,
    client_id UUID NOT NULL REFERENCES users(id) ON DELETE RESTRICT,
    contract_on_chain_id VARCHAR(255) NOT NULL CHECK (length(trim(contract_on_chain_id)) > 0),
    amount_locked NUMERIC(12, 2) NOT NULL CHECK (amount_locked > 0 AND amount_locked <> 'NaN'),
    escrow_status escrow_status NOT NULL DEFAULT 'pending',
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CHECK (freelancer_id <> client_id),
    CHECK (
        (contract_type = 'project' AND project_id IS NOT NULL)
        OR (contract_type = 'service' AND service_request_id IS NOT NULL)
    )
);

-- 建立索引以加速查詢
CREATE INDEX IF NOT EXISTS idx_projects_client ON projects(client_id);
CREATE INDEX IF NOT EXISTS idx_projects_status ON projects(status);
CREATE INDEX IF NOT EXISTS idx_contracts_freelancer ON contracts(freelancer_id);
CREATE INDEX IF NOT EXISTS idx_contracts_client ON contracts(client_id);
CREATE INDEX IF NOT EXISTS idx_contracts_escrow_status ON contracts(escrow_status);
"""


def init_database():
    """
    建立資料表、列舉類型與索引。
    使用同步連線 (psycopg.connect)，因為只在伺服器啟動前執行一次。
    """
    settings = get_settings()
    logger.info("Checking database schema...")
    try:
        with psycopg.connect(settings.database_url) as conn:
            with conn.cursor() as cur:
                cur.execute(INIT_SQL)
            conn.commit()
    except psycopg.Error:
        logger.exception("Database initialization failed")
        raise
    logger.info("Database schema is up to date")


if __name__ == "__main__":
    from config import setup_logging

    setup_logging(get_settings())
    init_database()
