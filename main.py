import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from config import get_settings, setup_logging
from db import close_pool, open_pool
from errors import AppError
from init_db import init_database
from utils import build_error_response, build_success_response

settings = get_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)


# --- 1. 啟動與關閉 ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # 伺服器啟動時檢查並建立資料表，不用手動去資料庫下 SQL
    if settings.init_db_on_startup:
        init_database()
    await open_pool()
    yield
    await close_pool()


# --- 2. 建立應用程式 ---
app = FastAPI(title="Projects & Escrow Contracts API", lifespan=lifespan)

# --- 3. 設定 Session ---
# 帳號系統登入後會在 Session 寫入 user_id，這裡只負責驗證簽章與讀取
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.environment == "production",
)


# --- 4. 錯誤處理 ---
# 服務層丟出的錯誤統一轉成 {"success": false, "message": ...}
@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError):
    if exc.status_code >= 500:
        # 資料庫錯誤的細節只寫進 log，不回傳給前端
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=build_error_response("Internal server error"))
    return JSONResponse(status_code=exc.status_code, content=build_error_response(exc.message))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    # pydantic 的型別錯誤 (例如 budget 傳了文字) 也回 400
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location}: {first.get('msg')}" if location else f"Invalid request: {first.get('msg')}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=build_error_response(message))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=build_error_response("Internal server error"))


# --- 5. 註冊路由 ---
from routes.projects import router as projects_router  # noqa: E402
from routes.contracts import router as contracts_router  # noqa: E402

app.include_router(projects_router)
app.include_router(contracts_router)


@app.get("/health")
async def health():
    return build_success_response(message="OK")
