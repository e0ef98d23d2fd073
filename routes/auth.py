import logging

from fastapi import Depends, Request

from config import Settings, get_settings
from errors import Unauthorized
from utils import is_valid_uuid

logger = logging.getLogger(__name__)


# --- 1. 取得當前登入者 ---
# 登入由帳號系統處理，它會把 user_id 寫進簽章過的 Session Cookie
# (SessionMiddleware 與這裡共用同一把 SECRET_KEY)
async def get_session_user_id(request: Request) -> str | None:
    """
    從 Session 取得 user_id，沒登入就回傳 None。
    Session 裡的值不是 UUID 格式的話，為了安全直接清掉。
    """
    user_id = request.session.get("user_id")
    if not user_id:
        return None

    user_id = str(user_id)
    if not is_valid_uuid(user_id):
        request.session.clear()
        return None
    return user_id


# --- 2. 決定這次操作的身分 ---
def resolve_acting_user(session_user_id: str | None, claimed_user_id: str | None,
                        settings: Settings) -> str | None:
    """
    規則：
    1. 有 Session 就以 Session 為準；body 另外帶了不同的 user_id 就拒絕。
    2. 沒有 Session 時，ALLOW_BODY_PRINCIPAL 開啟才接受 body 的 user_id (暫代身分)。
    3. 都沒有就回傳 None，由服務層判斷是否需要身分。
    """
    if session_user_id:
        if claimed_user_id and claimed_user_id != session_user_id:
            logger.warning("Body user_id %s does not match session user %s", claimed_user_id, session_user_id)
            raise Unauthorized("user_id does not match the signed-in user")
        return session_user_id

    if claimed_user_id and settings.allow_body_principal:
        logger.warning("Using unauthenticated user_id %s from request body", claimed_user_id)
        return claimed_user_id
    return None


class ActingUser:
    """
    Dependency：把 Session 身分與設定包在一起，handler 再把 body 裡宣稱的 user_id 丟進來。

        acting: ActingUser = Depends()
        user_id = acting.resolve(body.user_id)
    """

    def __init__(self,
                 session_user_id: str | None = Depends(get_session_user_id),
                 settings: Settings = Depends(get_settings)):
        self.session_user_id = session_user_id
        self.settings = settings

    def resolve(self, claimed_user_id: str | None = None) -> str | None:
        return resolve_acting_user(self.session_user_id, claimed_user_id, self.settings)
