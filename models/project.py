# models/project.py
from datetime import datetime
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from models.user import UserSummary


class ProjectStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


PROJECT_STATUSES = tuple(s.value for s in ProjectStatus)

# 專案狀態轉換表：目前狀態 -> 下一步可以去的狀態
# completed 與 cancelled 是終點，不能再轉換
PROJECT_STATUS_TRANSITIONS = MappingProxyType({
    ProjectStatus.PENDING.value: frozenset({ProjectStatus.IN_PROGRESS.value, ProjectStatus.CANCELLED.value}),
    ProjectStatus.IN_PROGRESS.value: frozenset({ProjectStatus.COMPLETED.value, ProjectStatus.CANCELLED.value}),
    ProjectStatus.COMPLETED.value: frozenset(),
    ProjectStatus.CANCELLED.value: frozenset(),
})


def allowed_project_transitions(status: str) -> frozenset:
    # 資料庫裡如果有奇怪的狀態，當作不能轉換，不要讓程式崩潰
    return PROJECT_STATUS_TRANSITIONS.get(status, frozenset())


class Project(BaseModel):
    id: str
    client_id: str
    title: str
    description: str
    category: str
    budget: float
    status: str
    created_at: datetime


class ProjectWithClient(Project):
    client: UserSummary


class ProjectCreate(BaseModel):
    """POST /projects 的 body，欄位都先設成可選，由 handler 檢查必填"""
    # "NaN" / "Infinity" 直接當成格式錯誤 (400)
    model_config = ConfigDict(allow_inf_nan=False)

    client_id: str | None = None
    title: str | None = None
    description: str | None = None
    category: str | None = None
    budget: float | None = None


class ProjectUpdate(BaseModel):
    """
    PUT /projects/{id} 的 body。
    沒有出現在 JSON 裡的欄位不會被更新 (用 model_fields_set 判斷)，
    明確傳 null 也不會覆蓋，因為這些欄位在資料庫都是 NOT NULL。
    """
    model_config = ConfigDict(allow_inf_nan=False)

    title: str | None = None
    description: str | None = None
    category: str | None = None
    budget: float | None = None
    status: str | None = None
    user_id: str | None = None

    def changes(self) -> dict:
        fields = ("title", "description", "category", "budget", "status")
        return {
            name: getattr(self, name)
            for name in fields
            if name in self.model_fields_set and getattr(self, name) is not None
        }


class ProjectFilters(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    category: str | None = None
    budget_min: float | None = None
    budget_max: float | None = None
    status: str | None = None
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
