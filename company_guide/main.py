import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from company_guide.core.config import settings
from company_guide.core.database import init_models
from company_guide.core.exceptions import register_exception_handlers
from company_guide.core.middleware import MethodOverrideMiddleware
from company_guide.routers import auth_router, member_router, profile_router


# 設定基礎日誌
logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__) # 建立一個 logger 實例


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREATE_TABLES:
        await init_models()
        logger.info("Database tables ready")
    yield


def create_app() -> FastAPI:
    app = FastAPI(lifespan=lifespan)

    # flash 訊息存在簽章過的 session cookie
    app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET_KEY)
    # HTML 表單用 ?_method=PUT / DELETE
    app.add_middleware(MethodOverrideMiddleware)

    register_exception_handlers(app)

    # --- 根路徑 ---
    @app.get("/")
    def read_root(request: Request):
        return RedirectResponse(request.app.url_path_for("guide"), status_code=status.HTTP_303_SEE_OTHER)

    # --- 載入路由 ---
    # member_router 必須在 profile_router 之前 (/profile/edit 不能被當成 slug)
    app.include_router(auth_router.router)
    app.include_router(member_router.router)
    app.include_router(profile_router.router)

    # 上傳的 logo (<UPLOAD_DIR>/logos/...)
    app.mount("/storage", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="storage")

    return app


app = create_app()
