# models/user.py
from pydantic import BaseModel


class UserSummary(BaseModel):
    """嵌在專案 / 合約回應裡的使用者摘要 (users 表由外部系統維護，這裡只讀)"""
    id: str
    name: str | None = None
    username: str | None = None
    email: str | None = None


class User(UserSummary):
    # True = 接案人 (freelancer)，False = 委託人 (client)
    is_freelancer: bool = False
