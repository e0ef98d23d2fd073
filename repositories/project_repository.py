# repositories/project_repository.py
from psycopg import sql

from models.project import Project, ProjectFilters, ProjectStatus, ProjectWithClient
from repositories.base import BaseRepository, split_summary

PROJECT_COLUMNS = "p.id, p.client_id, p.title, p.description, p.category, p.budget, p.status, p.created_at"

CLIENT_COLUMNS = "u.id AS client_uid, u.name AS client_name, u.username AS client_username, u.email AS client_email"

# 可以被 PATCH 更新的欄位 (白名單，避免拼接任意欄位名稱)
UPDATABLE_COLUMNS = ("title", "description", "category", "budget", "status")


def _with_client(row: dict) -> ProjectWithClient:
    client = split_summary(row, "client")
    return ProjectWithClient(**row, client=client)


class ProjectRepository(BaseRepository):

    async def create_project(self, client_id: str, title: str, description: str,
                             category: str, budget: float) -> Project:
        row = await self.fetchone(
            """
            INSERT INTO projects AS p (client_id, title, description, category, budget, status)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING """ + PROJECT_COLUMNS,
            (client_id, title, description, category, budget, ProjectStatus.PENDING.value),
            action="create project",
        )
        return Project(**row)

    async def list_projects(self, filters: ProjectFilters) -> tuple[list[ProjectWithClient], int]:
        # 動態組合 WHERE 條件
        conditions = []
        params: list = []
        if filters.category:
            conditions.append("p.category ILIKE %s")
            params.append(f"%{filters.category}%")
        if filters.budget_min is not None:
            conditions.append("p.budget >= %s")
            params.append(filters.budget_min)
        if filters.budget_max is not None:
            conditions.append("p.budget <= %s")
            params.append(filters.budget_max)
        if filters.status:
            conditions.append("p.status = %s")
            params.append(filters.status)
        where = ("WHERE " + " AND ".join(conditions)) if conditions else ""

        total = await self.scalar(
            f"SELECT COUNT(*) AS count FROM projects p JOIN users u ON p.client_id = u.id {where}",
            tuple(params),
            action="count projects",
        )
        rows = await self.fetchall(
            f"""
            SELECT {PROJECT_COLUMNS}, {CLIENT_COLUMNS}
            FROM projects p
            JOIN users u ON p.client_id = u.id
            {where}
            ORDER BY p.created_at DESC, p.id
            LIMIT %s OFFSET %s
            """,
            tuple(params) + (filters.limit, filters.offset),
            action="fetch projects",
        )
        return [_with_client(r) for r in rows], total or 0

    async def get_project_with_client(self, project_id: str) -> ProjectWithClient | None:
        row = await self.fetchone(
            f"""
            SELECT {PROJECT_COLUMNS}, {CLIENT_COLUMNS}
            FROM projects p
            JOIN users u ON p.client_id = u.id
            WHERE p.id = %s
            """,
            (project_id,),
            action="fetch project",
        )
        return _with_client(row) if row else None

    async def get_project(self, project_id: str) -> Project | None:
        row = await self.fetchone(
            f"SELECT {PROJECT_COLUMNS} FROM projects p WHERE p.id = %s",
            (project_id,),
            action="fetch project",
        )
        return Project(**row) if row else None

    async def update_project(self, project_id: str, changes: dict, expected_status: str) -> Project | None:
        """
        條件式更新：只有在狀態仍然是 expected_status 時才寫入。
        沒有任何一列被更新就回傳 None (專案不存在或狀態已經被別人改掉)。
        """
        columns = [c for c in UPDATABLE_COLUMNS if c in changes]
        if columns:
            assignments = sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(c)) for c in columns
            )
        else:
            # 沒有要改的欄位時仍然跑一次條件式 UPDATE，順便確認狀態
            assignments = sql.SQL("status = status")
        query = sql.SQL(
            "UPDATE projects AS p SET {} WHERE p.id = %s AND p.status = %s RETURNING " + PROJECT_COLUMNS
        ).format(assignments)
        params = tuple(changes[c] for c in columns) + (project_id, expected_status)
        row = await self.fetchone(query, params, action="update project")
        return Project(**row) if row else None

    async def list_by_client(self, client_id: str) -> list[Project]:
        rows = await self.fetchall(
            f"SELECT {PROJECT_COLUMNS} FROM projects p WHERE p.client_id = %s ORDER BY p.created_at DESC",
            (client_id,),
            action="fetch client projects",
        )
        return [Project(**r) for r in rows]

    async def list_categories(self) -> list[str]:
        rows = await self.fetchall(
            "SELECT DISTINCT category FROM projects WHERE status <> %s ORDER BY category",
            (ProjectStatus.CANCELLED.value,),
            action="fetch categories",
        )
        return [r["category"] for r in rows]
