# repositories/user_repository.py
from models.user import User
from repositories.base import BaseRepository


class UserRepository(BaseRepository):
    """users 表的唯讀查詢"""

    async def get_user(self, user_id: str) -> User | None:
        row = await self.fetchone(
            "SELECT id, name, username, email, is_freelancer FROM users WHERE id = %s",
            (user_id,),
            action="fetch user",
        )
        return User(**row) if row else None

    async def count_existing(self, user_ids: list[str]) -> int:
        """回傳 user_ids 裡有幾個 (不重複的) 使用者真的存在"""
        count = await self.scalar(
            "SELECT COUNT(*) AS count FROM users WHERE id = ANY(%s::uuid[])",
            (list(user_ids),),
            action="check users",
        )
        return count or 0
