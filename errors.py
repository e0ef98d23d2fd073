# errors.py
# 服務層丟出的錯誤類型，每一種都對應一個 HTTP 狀態碼
# main.py 的 exception handler 會把它們轉成 {"success": false, "message": ...}


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(AppError):
    """請求資料缺漏、格式錯誤或超出範圍"""
    status_code = 400


class InvalidTransition(AppError):
    """狀態轉換不在轉換表裡"""
    status_code = 400


class InvalidState(AppError):
    """目前狀態不允許這個操作 (例如刪除非 pending 的專案)"""
    status_code = 400


class NotFound(AppError):
    status_code = 404


class Forbidden(AppError):
    """角色不對，例如接案人想建立專案"""
    status_code = 403


class Unauthorized(AppError):
    """不是資源的擁有者或參與者"""
    status_code = 403


class StoreError(AppError):
    """資料庫操作失敗"""
    status_code = 500
