from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from psycopg import AsyncConnection

from db import getDB
from errors import Unauthorized
from models.project import PROJECT_STATUSES, ProjectCreate, ProjectFilters, ProjectUpdate
from repositories import ProjectRepository, UserRepository
from routes.auth import ActingUser
from services import ProjectService
from services.project_service import TEXT_FIELDS
from utils import (
    build_error_response,
    build_list_response,
    build_paginated_response,
    build_success_response,
    parse_pagination,
    require_amount,
    require_choice,
    require_fields,
    require_non_blank,
    require_non_negative,
    require_uuid,
)

# 設定 Router
router = APIRouter(tags=["projects"])

INVALID_STATUS_MESSAGE = f"Invalid status. Must be one of: {', '.join(PROJECT_STATUSES)}"


# 每個請求用同一條連線建立 repository 與 service
# 測試時用 app.dependency_overrides 換成記憶體版
async def get_project_service(conn: AsyncConnection = Depends(getDB)) -> ProjectService:
    return ProjectService(projects=ProjectRepository(conn), users=UserRepository(conn))


# =========================================================
# 第一部分：建立與列表
# =========================================================

# 1. 建立專案
@router.post("/projects")
async def create_project(
    body: ProjectCreate,
    acting: ActingUser = Depends(),
    service: ProjectService = Depends(get_project_service),
):
    # 資料驗證：必填欄位、ID 格式、文字不能只有空白、預算不能是負數
    require_fields(body.model_dump(), ("client_id", "title", "description", "category", "budget"))
    require_uuid(body.client_id, "client")
    for field in TEXT_FIELDS:
        require_non_blank(getattr(body, field), f"{field} cannot be empty")
    require_non_negative(body.budget, "Budget must be a positive number")
    require_amount(body.budget, "Budget")

    # 已登入時，只能用自己的帳號建立專案
    if acting.session_user_id and acting.session_user_id != body.client_id:
        raise Unauthorized("You can only create projects for your own account")

    project = await service.create_project(
        client_id=body.client_id,
        title=body.title,
        description=body.description,
        category=body.category,
        budget=body.budget,
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=build_success_response(project.model_dump(mode="json"), "Project created successfully"),
    )


# 2. 專案列表 (篩選 + 分頁)
@router.get("/projects")
async def list_projects(
    category: str | None = Query(None),
    budget_min: float | None = Query(None, allow_inf_nan=False),
    budget_max: float | None = Query(None, allow_inf_nan=False),
    status_filter: str | None = Query(None, alias="status"),
    page: int | None = Query(None),
    limit: int | None = Query(None),
    service: ProjectService = Depends(get_project_service),
):
    page, limit = parse_pagination(page, limit)
    if status_filter:
        require_choice(status_filter, PROJECT_STATUSES, INVALID_STATUS_MESSAGE)

    filters = ProjectFilters(
        category=category.strip() if category else None,
        budget_min=budget_min,
        budget_max=budget_max,
        status=status_filter or None,
        page=page,
        limit=limit,
    )
    projects, total = await service.list_projects(filters)
    return build_paginated_response(
        [p.model_dump(mode="json") for p in projects],
        total=total,
        page=page,
        limit=limit,
        message="Projects retrieved successfully",
    )


# 3. 所有分類 (不含已取消的專案)
# 必須寫在 /projects/{project_id} 前面，不然 "categories" 會被當成 ID
@router.get("/projects/categories")
async def list_categories(service: ProjectService = Depends(get_project_service)):
    categories = await service.list_categories()
    return build_list_response(categories, "Categories retrieved successfully")


# 4. 某個委託人的所有專案
@router.get("/projects/client/{client_id}")
async def list_client_projects(client_id: str, service: ProjectService = Depends(get_project_service)):
    require_uuid(client_id, "client")
    projects = await service.list_projects_by_client(client_id)
    return build_list_response([p.model_dump(mode="json") for p in projects],
                               "Client projects retrieved successfully")


# =========================================================
# 第二部分：單一專案 (查詢、修改、刪除)
# =========================================================

# 5. 專案詳情
@router.get("/projects/{project_id}")
async def get_project(project_id: str, service: ProjectService = Depends(get_project_service)):
    require_uuid(project_id, "project")

    project = await service.get_project_by_id(project_id)
    if project is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=build_error_response("Project not found"))

    return build_success_response(project.model_dump(mode="json"), "Project retrieved successfully")


# 6. 修改專案 (也用來推進狀態)
@router.put("/projects/{project_id}")
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    acting: ActingUser = Depends(),
    service: ProjectService = Depends(get_project_service),
):
    require_uuid(project_id, "project")
    for field in TEXT_FIELDS:
        if getattr(body, field) is not None:
            require_non_blank(getattr(body, field), f"{field} cannot be empty")
    require_non_negative(body.budget, "Budget must be a positive number")
    require_amount(body.budget, "Budget")
    if body.status is not None:
        require_choice(body.status, PROJECT_STATUSES, INVALID_STATUS_MESSAGE)
    if body.user_id is not None:
        require_uuid(body.user_id, "user")

    requesting_client_id = acting.resolve(body.user_id)
    updated = await service.update_project(project_id, body.changes(), requesting_client_id)
    if updated is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=build_error_response("Project not found"))

    return build_success_response(updated.model_dump(mode="json"), "Project updated successfully")


# 7. 刪除專案 (軟刪除 -> cancelled)
@router.delete("/projects/{project_id}")
async def delete_project(
    project_id: str,
    user_id: str | None = Query(None),
    acting: ActingUser = Depends(),
    service: ProjectService = Depends(get_project_service),
):
    require_uuid(project_id, "project")
    if user_id is not None:
        require_uuid(user_id, "user")

    deleted = await service.delete_project(project_id, acting.resolve(user_id))
    if not deleted:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=build_error_response("Project not found"))

    return build_success_response(message="Project deleted successfully")
