# services/project_service.py
import logging

from errors import Forbidden, InvalidInput, InvalidState, InvalidTransition, NotFound, Unauthorized
from models.project import (
    Project,
    ProjectFilters,
    ProjectStatus,
    ProjectWithClient,
    allowed_project_transitions,
)
from utils import require_amount, require_non_blank, require_non_negative

logger = logging.getLogger(__name__)

# 會被 trim 的文字欄位
TEXT_FIELDS = ("title", "description", "category")


class ProjectService:
    """
    專案的 CRUD 與狀態流程。

    projects / users 是 repository 物件 (正式環境為 psycopg 實作，測試時換成記憶體版)。
    """

    def __init__(self, projects, users):
        self.projects = projects
        self.users = users

    async def create_project(self, client_id: str, title: str, description: str,
                             category: str, budget: float) -> Project:
        # 步驟 1: 確認使用者存在，而且是委託人 (不是接案人)
        user = await self.users.get_user(client_id)
        if user is None:
            raise NotFound("User not found")
        if user.is_freelancer:
            logger.warning("Freelancer %s tried to create a project", client_id)
            raise Forbidden("Only clients can create projects")

        if budget is None:
            raise InvalidInput("Budget must be a positive number")
        require_non_negative(budget, "Budget must be a positive number")
        require_amount(budget, "Budget")
        texts = {
            field: require_non_blank(value, f"{field} cannot be empty")
            for field, value in zip(TEXT_FIELDS, (title, description, category))
        }

        # 步驟 2: 寫入資料庫，狀態一律從 pending 開始
        project = await self.projects.create_project(client_id=client_id, budget=budget, **texts)
        logger.info("Project %s created by client %s", project.id, client_id)
        return project

    async def list_projects(self, filters: ProjectFilters) -> tuple[list[ProjectWithClient], int]:
        return await self.projects.list_projects(filters)

    async def get_project_by_id(self, project_id: str) -> ProjectWithClient | None:
        # 找不到就回傳 None，由 handler 決定回 404
        return await self.projects.get_project_with_client(project_id)

    async def update_project(self, project_id: str, changes: dict,
                             requesting_client_id: str | None = None) -> Project | None:
        existing = await self.projects.get_project(project_id)
        if existing is None:
            return None

        # 有帶操作者身分時，只有專案擁有者可以修改
        if requesting_client_id and existing.client_id != requesting_client_id:
            logger.warning("User %s tried to update project %s owned by %s",
                           requesting_client_id, project_id, existing.client_id)
            raise Unauthorized("You can only update your own projects")

        # 只保留有給值的欄位，文字欄位去掉前後空白
        patch = {k: v for k, v in changes.items() if v is not None}
        for field in TEXT_FIELDS:
            if field in patch:
                patch[field] = require_non_blank(patch[field], f"{field} cannot be empty")
        if "budget" in patch:
            require_non_negative(patch["budget"], "Budget must be a positive number")
            require_amount(patch["budget"], "Budget")

        new_status = patch.get("status")
        if new_status is not None and new_status != existing.status:
            if new_status not in allowed_project_transitions(existing.status):
                raise InvalidTransition(
                    f"Invalid status transition from {existing.status} to {new_status}"
                )
        elif new_status is not None:
            # 狀態沒變就不用寫
            patch.pop("status")

        updated = await self.projects.update_project(project_id, patch, expected_status=existing.status)
        if updated is None:
            return await self._lost_race(project_id, existing.status, new_status)

        if new_status is not None and new_status != existing.status:
            logger.info("Project %s status %s -> %s", project_id, existing.status, new_status)
        else:
            logger.info("Project %s updated (%s)", project_id, ", ".join(sorted(patch)) or "no changes")
        return updated

    async def delete_project(self, project_id: str, requesting_client_id: str | None = None) -> bool:
        """軟刪除：把狀態改成 cancelled，資料列保留"""
        existing = await self.projects.get_project(project_id)
        if existing is None:
            return False

        if requesting_client_id and existing.client_id != requesting_client_id:
            logger.warning("User %s tried to delete project %s owned by %s",
                           requesting_client_id, project_id, existing.client_id)
            raise Unauthorized("You can only delete your own projects")

        # 只有還沒開始的專案可以刪
        if existing.status != ProjectStatus.PENDING.value:
            raise InvalidState("Can only delete projects that are still pending")

        updated = await self.projects.update_project(
            project_id,
            {"status": ProjectStatus.CANCELLED.value},
            expected_status=ProjectStatus.PENDING.value,
        )
        if updated is None:
            # 在讀取與更新之間被刪除或被改成其他狀態
            current = await self.projects.get_project(project_id)
            if current is None:
                return False
            raise InvalidState("Can only delete projects that are still pending")

        logger.info("Project %s cancelled (soft delete)", project_id)
        return True

    async def list_projects_by_client(self, client_id: str) -> list[Project]:
        return await self.projects.list_by_client(client_id)

    async def list_categories(self) -> list[str]:
        categories = await self.projects.list_categories()
        return sorted(set(categories))

    async def _lost_race(self, project_id: str, expected: str, target: str | None) -> None:
        """條件式更新沒有命中：專案被刪了就回 None，被別人改了狀態就當作不合法轉換"""
        current = await self.projects.get_project(project_id)
        if current is None:
            return None
        logger.warning("Project %s status changed concurrently (expected %s, now %s)",
                       project_id, expected, current.status)
        raise InvalidTransition(
            f"Invalid status transition from {current.status} to {target or current.status}: "
            f"project status changed from {expected} during the update"
        )
