import math
import re
from decimal import Decimal
from typing import Any, Iterable, Mapping

from errors import InvalidInput

# --- 1. 驗證用常數 ---
# 統一管理格式規則，以後要改只要改這裡就好
UUID_REGEX = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 50

# 金額欄位是 NUMERIC(12, 2)
AMOUNT_DECIMAL_PLACES = 2
MAX_AMOUNT = 10 ** 10


# --- 2. 驗證函式 ---
# 都是純函式：不碰資料庫，驗證失敗就丟 InvalidInput

def is_valid_uuid(value: Any) -> bool:
    return isinstance(value, str) and UUID_REGEX.match(value) is not None


def require_uuid(value: Any, label: str) -> str:
    """
    檢查路徑參數是不是 UUID 格式。
    label 用在錯誤訊息上，例如 "project" -> "Invalid project ID format"
    """
    if not is_valid_uuid(value):
        raise InvalidInput(f"Invalid {label} ID format")
    return value


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    # 空字串也當作沒填
    return isinstance(value, str) and value == ""


def require_fields(data: Mapping[str, Any], names: Iterable[str]) -> None:
    """
    檢查必填欄位，任何一個缺少就把整串欄位名稱列在訊息裡。
    """
    names = list(names)
    if any(_is_missing(data.get(name)) for name in names):
        raise InvalidInput(f"Missing required fields: {', '.join(names)}")


def require_non_negative(value: float | None, message: str) -> None:
    # NaN 跟任何數字比較都是 False，要先排除
    if value is not None and (not math.isfinite(value) or value < 0):
        raise InvalidInput(message)


def require_positive(value: float | None, message: str) -> None:
    if value is None or not math.isfinite(value) or value <= 0:
        raise InvalidInput(message)


def require_amount(value: float | None, label: str) -> None:
    """
    金額 (budget / amount_locked) 要放得進 NUMERIC(12, 2) 欄位：
    小數最多兩位、小於 10^10。None 不檢查，由必填檢查處理。
    """
    if value is None:
        return
    if not math.isfinite(value):
        raise InvalidInput(f"{label} must be a finite number")
    if abs(value) >= MAX_AMOUNT:
        raise InvalidInput(f"{label} must be less than {MAX_AMOUNT}")
    if Decimal(repr(float(value))).as_tuple().exponent < -AMOUNT_DECIMAL_PLACES:
        raise InvalidInput(f"{label} can have at most {AMOUNT_DECIMAL_PLACES} decimal places")


def require_non_blank(value: str | None, message: str) -> str:
    if value is None or not value.strip():
        raise InvalidInput(message)
    return value.strip()


def require_choice(value: Any, choices: Iterable[Any], message: str) -> Any:
    if value not in set(choices):
        raise InvalidInput(message)
    return value


def parse_pagination(page: int | None, limit: int | None) -> tuple[int, int]:
    """回傳 (page, limit)，沒給就用預設值 1 / 10"""
    page = DEFAULT_PAGE if page is None else page
    limit = DEFAULT_LIMIT if limit is None else limit

    if page < 1:
        raise InvalidInput("Page number must be greater than 0")
    if limit < 1 or limit > MAX_LIMIT:
        raise InvalidInput(f"Limit must be between 1 and {MAX_LIMIT}")
    return page, limit


# --- 3. 回應格式 ---
# 所有 API 回應都是 {success, message, data?, pagination?}

def build_success_response(data: Any = None, message: str = "OK") -> dict:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def build_list_response(items: list, message: str) -> dict:
    return {"success": True, "message": message, "data": items, "count": len(items)}


def build_paginated_response(items: list, total: int, page: int, limit: int, message: str) -> dict:
    return {
        "success": True,
        "message": message,
        "data": items,
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
            "total_projects": total,
            "per_page": limit,
        },
    }


def build_error_response(message: str) -> dict:
    return {"success": False, "message": message}
